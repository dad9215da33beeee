from __future__ import annotations

import threading

from rich.console import Console
from rich.progress import BarColumn, Progress, TaskID, TaskProgressColumn, TextColumn, TimeElapsedColumn


class RichProgress:
    """One live progress bar per contract under analysis.

    The bar is scaled to the analysis timeout and advanced once per tick by
    a background thread; ``done`` stops that thread before writing the final
    status, so no tick can land after completion.
    """

    def __init__(
        self,
        contract_names: list[str] | None = None,
        console: Console | None = None,
        tick_s: float = 1.0,
    ) -> None:
        self.tick_s = tick_s
        self.indent = max((len(name) for name in contract_names or []), default=0)
        self.progress = Progress(
            TextColumn("{task.description} |"),
            BarColumn(bar_width=40),
            TaskProgressColumn(),
            TextColumn("|| Elapsed:"),
            TimeElapsedColumn(),
            TextColumn("{task.fields[status]}"),
            console=console,
        )
        self._tickers: dict[str, tuple[threading.Event, threading.Thread, TaskID, int]] = {}
        self._lock = threading.Lock()

    def __enter__(self) -> "RichProgress":
        self.progress.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        with self._lock:
            names = list(self._tickers)
        for name in names:
            self.done(name, "cancelled", ok=False)
        self.progress.stop()

    def started(self, contract_name: str, timeout_s: int) -> None:
        total = max(int(timeout_s), 1)
        task = self.progress.add_task(
            contract_name.rjust(self.indent),
            total=total,
            status="in progress...",
        )
        stop = threading.Event()
        thread = threading.Thread(
            target=self._tick,
            args=(task, stop),
            name=f"progress-{contract_name}",
            daemon=True,
        )
        with self._lock:
            self._tickers[contract_name] = (stop, thread, task, total)
        thread.start()

    def done(self, contract_name: str, status: str, ok: bool) -> None:
        with self._lock:
            entry = self._tickers.pop(contract_name, None)
        if entry is None:
            return
        stop, thread, task, total = entry
        stop.set()
        thread.join()
        if ok:
            self.progress.update(task, completed=total, status=f"[green]✓ {status}")
        else:
            self.progress.update(task, status=f"[red]✗ {status}")

    def _tick(self, task: TaskID, stop: threading.Event) -> None:
        while not stop.wait(self.tick_s):
            self.progress.advance(task)
