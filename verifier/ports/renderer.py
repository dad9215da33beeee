from __future__ import annotations

from typing import Protocol

from verifier.core.aggregate import RenderableReport


class Renderer(Protocol):
    def __call__(self, report: RenderableReport) -> str:
        """Format an aggregated report for display."""
        ...
