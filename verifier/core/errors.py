from __future__ import annotations

from typing import Any


class VerifyError(Exception):
    """Base class for errors raised by the verification pipeline."""


class DecodeError(VerifyError):
    """A location could not be mapped back to source text."""


class NoInstructionAtOffset(DecodeError):
    def __init__(self, offset: int) -> None:
        super().__init__(f"no instruction at bytecode offset {offset}")
        self.offset = offset


class NoSourceMapEntry(DecodeError):
    def __init__(self, index: int, count: int) -> None:
        super().__init__(f"instruction {index} is past the end of the source map ({count} entries)")
        self.index = index
        self.count = count


class ServiceStatusError(VerifyError):
    """The analysis service finished a job with an error status."""

    def __init__(self, status: dict[str, Any]) -> None:
        message = status.get("error") or status.get("status") or "Error"
        super().__init__(str(message))
        self.status = status


class TransportError(VerifyError):
    """Network or protocol failure while talking to the analysis service."""


class ConfigurationError(VerifyError):
    """An invalid setting that must stop the run before any submission."""
