from __future__ import annotations

from typing import Protocol

from verifier.core.models import AnalysisResponse


class AnalysisClient(Protocol):
    """Remote analysis service boundary."""
    def analyze(self, payload: dict, timeout_ms: int) -> AnalysisResponse:
        """Submit one contract and wait for the job to finish.

        Args:
            payload (dict): Request data built from a compiled artifact.
            timeout_ms (int): Upper bound on the whole submission.

        Returns:
            AnalysisResponse: Issue groups plus the final job status.

        Raises:
            TransportError: The request could not be completed.
        """
        ...

    def get_issues(self, job_id: str) -> list[dict]:
        """Fetch the issue groups of a previously submitted job."""
        ...

    def api_version(self) -> dict:
        """Return the service's component versions."""
        ...
