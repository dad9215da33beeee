from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import PurePath

from verifier.core.issues import is_ignorable, normalize
from verifier.core.models import CompiledArtifact, NormalizedIssue, RawFinding
from verifier.core.srcmap import SourceMapEntry, line_starts, make_offset_to_instruction, parse_source_map


@dataclass(frozen=True)
class DecodingContext:
    """Lookup tables derived once from a compiled artifact."""
    offset_table: tuple[int, ...]
    deployed_entries: tuple[SourceMapEntry, ...]
    line_tables: dict[str, tuple[int, ...]]
    asts: dict[str, dict]

    @staticmethod
    def from_artifact(artifact: CompiledArtifact) -> "DecodingContext":
        return DecodingContext(
            offset_table=make_offset_to_instruction(artifact.deployed_bytecode),
            deployed_entries=parse_source_map(artifact.deployed_source_map),
            line_tables={name: line_starts(item.source) for name, item in artifact.sources.items()},
            asts={name: item.ast for name, item in artifact.sources.items() if item.ast},
        )

    def line_table(self, source_name: str) -> tuple[int, ...]:
        return self.line_tables.get(source_name, ())


class ContractReport:
    """Findings for one compiled artifact, plus the tables to place them."""

    def __init__(
        self,
        artifact: CompiledArtifact,
        debug: int = 0,
        log: logging.Logger | None = None,
    ) -> None:
        self.artifact = artifact
        self.context = DecodingContext.from_artifact(artifact)
        self.debug = debug
        self.log = log
        self.job_id: str | None = None
        self.findings: list[RawFinding] = []
        self.error_count = 0
        self.warning_count = 0

    @property
    def contract_name(self) -> str:
        return self.artifact.contract_name

    @property
    def file_path(self) -> str:
        for finding in self.findings:
            if finding.source_list:
                return finding.source_list[0]
        return self.artifact.source_path

    @property
    def source_name(self) -> str:
        return PurePath(self.file_path).name

    def set_findings(self, findings: list[RawFinding], job_id: str | None = None) -> None:
        """Replace the findings for this contract and refresh the counters."""
        self.findings = list(findings)
        if job_id is not None:
            self.job_id = job_id
        issues = self._normalize(space_limited=True, debug=0)
        self.error_count = sum(1 for issue in issues if issue.fatal)
        self.warning_count = sum(1 for issue in issues if not issue.fatal)

    def to_normalized_issues(self, space_limited: bool) -> list[NormalizedIssue]:
        return self._normalize(space_limited, self.debug)

    def _normalize(self, space_limited: bool, debug: int) -> list[NormalizedIssue]:
        source_name = self.source_name
        issues = []
        for finding in self.findings:
            if is_ignorable(finding, self.context, source_name, debug, self.log):
                continue
            issues.append(normalize(finding, self.context, source_name, space_limited))
        return issues
