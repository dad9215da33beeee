from __future__ import annotations

from typing import Protocol


class ProgressListener(Protocol):
    """Observer for per-contract submission progress.

    Implementations must not influence the pipeline; each contract only ever
    touches its own progress slot.
    """
    def started(self, contract_name: str, timeout_s: int) -> None:
        ...

    def done(self, contract_name: str, status: str, ok: bool) -> None:
        ...
