from __future__ import annotations

from dataclasses import dataclass


@dataclass
class NoopProgress:
    """No-op progress for --no-progress runs and tests."""
    def started(self, contract_name: str, timeout_s: int) -> None:
        return None

    def done(self, contract_name: str, status: str, ok: bool) -> None:
        return None
