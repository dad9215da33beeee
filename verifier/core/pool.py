from __future__ import annotations

import logging
import pprint
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Iterable

from verifier.core.config import DEFAULT_RATE_LIMIT, DEFAULT_TOOL_ID, check_rate_limit, default_timeout
from verifier.core.contract_report import ContractReport
from verifier.core.errors import ServiceStatusError, TransportError
from verifier.core.models import (
    AnalysisOutcome,
    AnalysisResponse,
    CompiledArtifact,
    Failed,
    Skipped,
    Succeeded,
    parse_findings,
)
from verifier.core.payload import build_request_payload, strip_empty_fields
from verifier.core.redaction import redact_data
from verifier.ports.progress import ProgressListener


logger = logging.getLogger(__name__)

SubmitFn = Callable[[dict, int], AnalysisResponse]

STATUS_COMPLETED = "completed"
STATUS_SERVICE_ERROR = "Error"
STATUS_TRANSPORT_ERROR = "error"


class AnalysisPool:
    """Submit artifacts to the analysis service with a bounded number in flight.

    Work is handed to a fixed-size thread pool, so as soon as one submission
    finishes the next queued artifact starts. One artifact failing or timing
    out never affects the others.
    """

    def __init__(
        self,
        submit_fn: SubmitFn,
        limit: int = DEFAULT_RATE_LIMIT,
        timeout_s: int | None = None,
        mode: str = "quick",
        tool_id: str = DEFAULT_TOOL_ID,
        progress: ProgressListener | None = None,
        debug: int = 0,
        log: logging.Logger | None = None,
    ) -> None:
        self.submit_fn = submit_fn
        self.limit = check_rate_limit(limit)
        self.timeout_s = default_timeout(mode) if timeout_s is None else int(timeout_s)
        self.mode = mode
        self.tool_id = tool_id
        self.progress = progress
        self.debug = debug
        self.log = log or logger

    def run(
        self,
        artifacts: list[CompiledArtifact],
        name_filter: Iterable[str] | None = None,
    ) -> list[AnalysisOutcome]:
        """Analyze every artifact and return one outcome per artifact, in input order.

        Args:
            artifacts (list[CompiledArtifact]): Contracts to analyze.
            name_filter (Iterable[str] | None): When given, contracts whose
                name is not listed are skipped without contacting the service.

        Returns:
            list[AnalysisOutcome]: Skipped, Failed or Succeeded per artifact.
        """
        wanted = set(name_filter) if name_filter is not None else None
        outcomes: list[AnalysisOutcome | None] = [None] * len(artifacts)
        with ThreadPoolExecutor(max_workers=self.limit, thread_name_prefix="analysis") as executor:
            pending = {}
            for index, artifact in enumerate(artifacts):
                if wanted is not None and artifact.contract_name not in wanted:
                    outcomes[index] = Skipped(artifact.contract_name)
                    continue
                pending[executor.submit(self.analyze_one, artifact)] = index
            for future in as_completed(pending):
                outcomes[pending[future]] = future.result()
        return [outcome for outcome in outcomes if outcome is not None]

    def analyze_one(self, artifact: CompiledArtifact) -> AnalysisOutcome:
        name = artifact.contract_name
        payload, dropped = strip_empty_fields(build_request_payload(artifact, self.mode, self.tool_id))
        if self.debug and dropped:
            self.log.debug("Empty JSON data fields from compilation in contract %s: %s", name, ", ".join(dropped))
        if self.debug > 1:
            self.log.debug("Request for %s:\n%s", name, pprint.pformat(redact_data(payload)))

        report = ContractReport(artifact, debug=self.debug, log=self.log)

        self._started(name)
        try:
            response = self.submit_fn(payload, self.timeout_s * 1000)
            status = response.status
            findings = [] if status.is_error else parse_findings(response.issues)
        except Exception as exc:  # isolate every failure to its own contract
            self._done(name, STATUS_TRANSPORT_ERROR, ok=False)
            error = exc if isinstance(exc, TransportError) else TransportError(f"{name}: {exc}")
            if error is not exc:
                error.__cause__ = exc
            return Failed(name, error)

        if self.debug:
            self.log.debug("Job id for %s is %s", name, status.job_id)
            if self.debug > 1:
                self.log.debug("Issues for %s:\n%s", name, pprint.pformat(response.issues))
                self.log.debug("Status for %s:\n%s", name, pprint.pformat(redact_data(status.payload)))

        if status.is_error:
            self._done(name, STATUS_SERVICE_ERROR, ok=False)
            return Failed(name, ServiceStatusError(status.payload or {"status": status.state}))

        report.set_findings(findings, job_id=status.job_id)
        self._done(name, STATUS_COMPLETED, ok=True)
        return Succeeded(name, report)

    def _started(self, name: str) -> None:
        if self.progress is not None:
            self.progress.started(name, self.timeout_s)

    def _done(self, name: str, status: str, ok: bool) -> None:
        if self.progress is not None:
            self.progress.done(name, status, ok)


def partition_outcomes(outcomes: list[AnalysisOutcome]) -> tuple[list[Failed], list[ContractReport]]:
    """Split outcomes into failures and successful reports; skipped ones are dropped."""
    failed: list[Failed] = []
    reports: list[ContractReport] = []
    for outcome in outcomes:
        if isinstance(outcome, Failed):
            failed.append(outcome)
        elif isinstance(outcome, Succeeded):
            reports.append(outcome.report)
    return failed, reports


def find_missing_contracts(artifacts: list[CompiledArtifact], names: Iterable[str] | None) -> list[str]:
    """Requested contract names that have no compiled artifact."""
    if not names:
        return []
    known = {artifact.contract_name for artifact in artifacts}
    return [name for name in names if name not in known]
