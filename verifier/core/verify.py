from __future__ import annotations

import logging
import traceback
from dataclasses import dataclass, field

from verifier.core.aggregate import RenderableReport, aggregate
from verifier.core.config import VerifyConfig
from verifier.core.errors import ServiceStatusError
from verifier.core.formatters import get_formatter
from verifier.core.issues import is_space_limited
from verifier.core.models import AnalysisOutcome, Failed
from verifier.core.pool import AnalysisPool, find_missing_contracts, partition_outcomes
from verifier.core.replay import render_replay
from verifier.ports.analysis_client import AnalysisClient
from verifier.ports.artifact_source import ArtifactSource
from verifier.ports.progress import ProgressListener


logger = logging.getLogger(__name__)


@dataclass
class VerifySummary:
    rendered: str
    report: RenderableReport | None = None
    failed: list[Failed] = field(default_factory=list)
    not_found: list[str] = field(default_factory=list)
    outcomes: list[AnalysisOutcome] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class Verifier:
    def __init__(
        self,
        client: AnalysisClient,
        artifact_source: ArtifactSource,
        progress: ProgressListener | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self.client = client
        self.artifact_source = artifact_source
        self.progress = progress
        self.log = log or logger

    def run(self, config: VerifyConfig, contract_names: list[str] | None = None) -> VerifySummary:
        """Analyze compiled contracts and render the merged issue report.

        Args:
            config (VerifyConfig): Run settings; validated before any submission.
            contract_names (list[str] | None): Restrict analysis to these contracts.

        Returns:
            VerifySummary: Rendered report plus failures and unknown contract names.

        Raises:
            ConfigurationError: A setting is invalid; nothing was submitted.
            TransportError: Replaying a previous job failed.
        """
        config.validate()
        formatter = get_formatter(config.style)

        if config.job_id:
            groups = self.client.get_issues(config.job_id)
            return VerifySummary(rendered=render_replay(groups))

        artifacts = self.artifact_source.load()
        names = list(contract_names) if contract_names else None
        pool = AnalysisPool(
            self.client.analyze,
            limit=config.rate_limit,
            timeout_s=config.timeout_s,
            mode=config.mode,
            tool_id=config.client_tool_name,
            progress=self.progress if config.progress else None,
            debug=config.debug,
            log=self.log,
        )
        outcomes = pool.run(artifacts, names)
        failed, reports = partition_outcomes(outcomes)
        not_found = find_missing_contracts(artifacts, names)
        report = aggregate(reports, is_space_limited(config.style))
        self.log.debug(
            "Analyzed %d contract(s): %d succeeded, %d failed",
            len(outcomes),
            len(reports),
            len(failed),
        )
        return VerifySummary(
            rendered=formatter(report),
            report=report,
            failed=failed,
            not_found=not_found,
            outcomes=outcomes,
        )


def describe_failures(summary: VerifySummary, debug: int = 0) -> list[str]:
    """User-facing error lines for missing contracts and failed analyses."""
    lines = []
    if summary.not_found:
        lines.append(f"These smart contracts were not found: {', '.join(summary.not_found)}")
    if summary.failed:
        lines.append("Internal MythX errors encountered:")
        for outcome in summary.failed:
            error = outcome.error
            if isinstance(error, ServiceStatusError):
                lines.append(f"{outcome.contract_name}: {error} ({error.status})")
            else:
                lines.append(f"{outcome.contract_name}: {error}")
            origin = error if error.__traceback__ is not None else error.__cause__
            if debug > 1 and origin is not None and origin.__traceback__ is not None:
                lines.append("".join(traceback.format_exception(type(origin), origin, origin.__traceback__)).rstrip())
    return lines
