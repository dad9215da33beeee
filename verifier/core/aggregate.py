from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePath

from verifier.core.contract_report import ContractReport
from verifier.core.models import NormalizedIssue


@dataclass
class FileIssues:
    """Sorted, de-duplicated issues for one source file."""
    file_path: str
    messages: list[NormalizedIssue] = field(default_factory=list)
    contracts: list[str] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.messages if issue.fatal)

    @property
    def warning_count(self) -> int:
        return sum(1 for issue in self.messages if not issue.fatal)


@dataclass
class RenderableReport:
    files: list[FileIssues]

    @property
    def error_count(self) -> int:
        return sum(item.error_count for item in self.files)

    @property
    def warning_count(self) -> int:
        return sum(item.warning_count for item in self.files)

    @property
    def issue_count(self) -> int:
        return sum(len(item.messages) for item in self.files)


def aggregate(reports: list[ContractReport], space_limited: bool = False) -> RenderableReport:
    """Merge per-contract reports into per-file issue lists.

    Args:
        reports (list[ContractReport]): Successful contract reports, any order.
        space_limited (bool): Use short issue messages.

    Returns:
        RenderableReport: Files ordered by path, issues ordered by line then
            column, with exact duplicates removed.

    Notes:
        Reports are ordered by file path and contract name before merging so
        the output does not depend on the order analyses completed in.
    """
    groups: dict[str, FileIssues] = {}
    ordered = sorted(reports, key=lambda item: (item.file_path, item.contract_name))
    for report in ordered:
        key = PurePath(report.file_path).name
        group = groups.get(key)
        if group is None:
            group = groups[key] = FileIssues(file_path=report.file_path)
        group.contracts.append(report.contract_name)
        group.messages.extend(report.to_normalized_issues(space_limited))

    for group in groups.values():
        group.messages = unique_issues(sort_messages(group.messages))
    return RenderableReport(files=sorted(groups.values(), key=lambda item: item.file_path))


def sort_messages(messages: list[NormalizedIssue]) -> list[NormalizedIssue]:
    return sorted(messages, key=lambda issue: (issue.line, issue.column))


def unique_issues(messages: list[NormalizedIssue]) -> list[NormalizedIssue]:
    seen: set[tuple] = set()
    result = []
    for issue in messages:
        key = issue.dedup_key()
        if key in seen:
            continue
        seen.add(key)
        result.append(issue)
    return result
