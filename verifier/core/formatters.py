from __future__ import annotations

import json
from collections import Counter

from verifier.core.aggregate import FileIssues, RenderableReport
from verifier.core.errors import ConfigurationError
from verifier.core.models import NormalizedIssue
from verifier.core.sarif import build_sarif
from verifier.ports.renderer import Renderer


_LABELS = {3: "high", 2: "medium", 1: "low"}


def _label(issue: NormalizedIssue) -> str:
    return _LABELS.get(issue.severity, "low")


def _problem_summary(report: RenderableReport) -> str:
    total = report.issue_count
    noun = "problem" if total == 1 else "problems"
    return f"{total} {noun} ({report.error_count} errors, {report.warning_count} warnings)"


def format_stylish(report: RenderableReport) -> str:
    lines: list[str] = []
    for group in report.files:
        if not group.messages:
            continue
        lines.append(group.file_path)
        for issue in group.messages:
            position = f"{issue.line}:{issue.column}"
            lines.append(f"  {position:>8}  {_label(issue):<6}  {issue.message}  {issue.rule_id}")
        lines.append("")
    if report.issue_count:
        lines.append(f"✖ {_problem_summary(report)}")
    return "\n".join(lines)


def format_compact(report: RenderableReport) -> str:
    lines = []
    for group in report.files:
        for issue in group.messages:
            lines.append(
                f"{group.file_path}: line {issue.line}, col {issue.column}, "
                f"{_label(issue).capitalize()} - {issue.message} ({issue.rule_id})"
            )
    if report.issue_count:
        lines.extend(["", _problem_summary(report)])
    return "\n".join(lines)


def format_unix(report: RenderableReport) -> str:
    lines = []
    for group in report.files:
        for issue in group.messages:
            lines.append(
                f"{group.file_path}:{issue.line}:{issue.column}: {issue.message} "
                f"[{_label(issue).capitalize()}/{issue.rule_id}]"
            )
    if report.issue_count:
        lines.extend(["", _problem_summary(report)])
    return "\n".join(lines)


def _issue_dict(issue: NormalizedIssue) -> dict:
    return {
        "ruleId": issue.rule_id,
        "severity": issue.severity,
        "message": issue.message,
        "line": issue.line,
        "column": issue.column,
        "endLine": issue.end_line,
        "endCol": issue.end_column,
        "fatal": issue.fatal,
        "mythXseverity": issue.source_severity,
    }


def _file_dict(group: FileIssues) -> dict:
    return {
        "filePath": group.file_path,
        "messages": [_issue_dict(issue) for issue in group.messages],
        "errorCount": group.error_count,
        "warningCount": group.warning_count,
        "fixableErrorCount": 0,
        "fixableWarningCount": 0,
    }


def format_json(report: RenderableReport) -> str:
    return json.dumps([_file_dict(group) for group in report.files])


def format_table(report: RenderableReport) -> str:
    lines = []
    for group in report.files:
        lines.append(group.file_path)
        lines.append(f"{'Line':>6} {'Column':>6}  {'Type':<7} {'Message':<60} {'Rule ID'}")
        lines.append("-" * 96)
        for issue in group.messages:
            lines.append(
                f"{issue.line:>6} {issue.column:>6}  {_label(issue):<7} {issue.message[:60]:<60} {issue.rule_id}"
            )
        lines.append("")
    lines.append(f"Errors: {report.error_count}  Warnings: {report.warning_count}")
    return "\n".join(lines)


def format_tap(report: RenderableReport) -> str:
    lines = ["TAP version 13", f"1..{len(report.files)}"]
    for number, group in enumerate(report.files, start=1):
        if not group.messages:
            lines.append(f"ok {number} - {group.file_path}")
            continue
        lines.append(f"not ok {number} - {group.file_path}")
        lines.append("  ---")
        lines.append("  messages:")
        for issue in group.messages:
            lines.append(f"    - message: {json.dumps(issue.message)}")
            lines.append(f"      severity: {_label(issue)}")
            lines.append(f"      ruleId: {issue.rule_id}")
            lines.append(f"      line: {issue.line}")
            lines.append(f"      column: {issue.column}")
        lines.append("  ...")
    return "\n".join(lines)


def format_markdown(report: RenderableReport) -> str:
    counts = Counter(_label(issue) for group in report.files for issue in group.messages)
    lines = [
        "# Security Analysis Report",
        "",
        f"Issues: {report.issue_count}",
        "By severity:",
    ]
    for label in ("high", "medium", "low"):
        lines.append(f"- {label}: {counts.get(label, 0)}")

    for group in report.files:
        lines.extend(["", f"## {group.file_path}"])
        if group.contracts:
            lines.append(f"Contracts: {', '.join(group.contracts)}")
        if not group.messages:
            lines.extend(["", "No issues found."])
            continue
        lines.extend(["", "| Line | Column | Severity | Rule | Message |", "| --- | --- | --- | --- | --- |"])
        for issue in group.messages:
            message = issue.message.replace("|", "\\|")
            lines.append(f"| {issue.line} | {issue.column} | {_label(issue)} | {issue.rule_id} | {message} |")
    return "\n".join(lines) + "\n"


def format_sarif(report: RenderableReport) -> str:
    return json.dumps(build_sarif(report), indent=2, sort_keys=True)


STYLES: dict[str, Renderer] = {
    "stylish": format_stylish,
    "compact": format_compact,
    "unix": format_unix,
    "json": format_json,
    "table": format_table,
    "tap": format_tap,
    "markdown": format_markdown,
    "sarif": format_sarif,
}


def get_formatter(style: str) -> Renderer:
    try:
        return STYLES[style]
    except KeyError:
        raise ConfigurationError(f"Unsupported style: {style}") from None
