from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePath
from typing import TYPE_CHECKING, Any

from verifier.core.errors import TransportError

if TYPE_CHECKING:
    from verifier.core.contract_report import ContractReport


BYTECODE_FORMAT = "evm-byzantium-bytecode"
TEXT_FORMAT = "text"


@dataclass(frozen=True)
class SourceFile:
    """Raw source text plus the compiler's syntax tree for one file."""
    source: str
    ast: dict | None = None


@dataclass(frozen=True)
class CompiledArtifact:
    """One compiled contract as produced by the build step."""
    contract_name: str
    bytecode: str
    deployed_bytecode: str
    source_map: str
    deployed_source_map: str
    source_path: str
    sources: dict[str, SourceFile]
    compiler_version: str | None = None

    @staticmethod
    def from_build_json(data: dict[str, Any]) -> "CompiledArtifact":
        """Build an artifact from a truffle ``build/contracts/*.json`` document.

        Sources are keyed by the basename of ``sourcePath`` so issues coming
        back from the service can be matched by file name.
        """
        source_path = data.get("sourcePath") or ""
        key = PurePath(source_path).name
        compiler = data.get("compiler") or {}
        return CompiledArtifact(
            contract_name=data["contractName"],
            bytecode=data.get("bytecode") or "",
            deployed_bytecode=data.get("deployedBytecode") or "",
            source_map=data.get("sourceMap") or "",
            deployed_source_map=data.get("deployedSourceMap") or "",
            source_path=source_path,
            sources={key: SourceFile(source=data.get("source") or "", ast=data.get("ast"))},
            compiler_version=compiler.get("version"),
        )

    @property
    def primary_source(self) -> str:
        return PurePath(self.source_path).name


@dataclass(frozen=True)
class RawFinding:
    """A single issue as reported by the analysis service."""
    severity: str
    swc_id: str
    swc_title: str
    head: str
    tail: str
    locations: list[str]
    source_format: str
    source_list: list[str] = field(default_factory=list)

    @property
    def primary_location(self) -> str | None:
        return self.locations[0] if self.locations else None


@dataclass(frozen=True)
class NormalizedIssue:
    """Report-ready issue with a line/column range."""
    rule_id: str
    message: str
    severity: int
    line: int = -1
    column: int = 0
    end_line: int = -1
    end_column: int = 0
    fatal: bool = False
    source_severity: str | None = None

    def dedup_key(self) -> tuple:
        return (
            self.rule_id,
            self.message,
            self.severity,
            self.line,
            self.column,
            self.end_line,
            self.end_column,
        )


@dataclass
class JobStatus:
    job_id: str | None
    state: str
    payload: dict = field(default_factory=dict)

    @property
    def is_error(self) -> bool:
        return self.state == "Error"


@dataclass
class AnalysisResponse:
    """Issue groups and final job status returned for one submission."""
    issues: list[dict]
    status: JobStatus


@dataclass
class AnalysisOutcome:
    contract_name: str


@dataclass
class Skipped(AnalysisOutcome):
    pass


@dataclass
class Failed(AnalysisOutcome):
    error: Exception


@dataclass
class Succeeded(AnalysisOutcome):
    report: "ContractReport"


def _expect(value: Any, kind: type, what: str) -> Any:
    if not isinstance(value, kind):
        raise TransportError(f"malformed issues response: {what} is {type(value).__name__}, expected {kind.__name__}")
    return value


def parse_findings(groups: list[dict]) -> list[RawFinding]:
    """Flatten the service's issue groups into RawFinding records.

    Each group carries ``sourceFormat`` and ``sourceList`` for all of its
    issues. Legacy issues with a top-level ``sourceMap`` and no ``locations``
    are treated as having a single location.

    Raises:
        TransportError: The response does not have the issue-group shape.
    """
    findings: list[RawFinding] = []
    for group in _expect(groups or [], list, "issues response"):
        _expect(group, dict, "issue group")
        source_format = group.get("sourceFormat") or TEXT_FORMAT
        source_list = [str(item) for item in _expect(group.get("sourceList") or [], list, "sourceList")]
        for issue in _expect(group.get("issues") or [], list, "issues"):
            _expect(issue, dict, "issue")
            description = _expect(issue.get("description") or {}, dict, "description")
            locations = [
                str(item.get("sourceMap"))
                for item in _expect(issue.get("locations") or [], list, "locations")
                if _expect(item, dict, "location").get("sourceMap") is not None
            ]
            if not locations and issue.get("sourceMap"):
                locations = [str(issue["sourceMap"])]
            findings.append(
                RawFinding(
                    severity=str(issue.get("severity") or ""),
                    swc_id=str(issue.get("swcID") or ""),
                    swc_title=str(issue.get("swcTitle") or ""),
                    head=str(description.get("head") or ""),
                    tail=str(description.get("tail") or ""),
                    locations=locations,
                    source_format=str(source_format),
                    source_list=source_list,
                )
            )
    return findings
