from __future__ import annotations

import hashlib

from verifier.core.aggregate import RenderableReport
from verifier.core.models import NormalizedIssue
from verifier.core.version import get_version


def build_sarif(report: RenderableReport, tool_version: str | None = None) -> dict:
    """Build a SARIF report from aggregated issues.

    Args:
        report (RenderableReport): Aggregated issues grouped by file.
        tool_version (str | None): Version recorded on the driver.

    Returns:
        dict: SARIF v2.1.0 document.

    Notes:
        Fingerprints only depend on rule, file and position so diffing tools
        can track an issue across runs even when message wording changes.
    """
    tool_version = tool_version or get_version()
    rules = []
    results = []
    seen_rules = set()

    for group in report.files:
        for issue in group.messages:
            if issue.rule_id not in seen_rules:
                rules.append({"id": issue.rule_id, "name": issue.rule_id})
                seen_rules.add(issue.rule_id)
            results.append(
                {
                    "ruleId": issue.rule_id,
                    "level": _level_for_severity(issue.severity),
                    "message": {"text": issue.message},
                    "locations": [
                        {
                            "physicalLocation": {
                                "artifactLocation": {"uri": group.file_path},
                                **_region(issue),
                            }
                        }
                    ],
                    "properties": {
                        "severity": issue.source_severity,
                        "contracts": group.contracts,
                    },
                    "partialFingerprints": {
                        "primary": _fingerprint(issue.rule_id, group.file_path, issue.line, issue.column),
                    },
                }
            )

    return {
        "$schema": "https://json.schemastore.org/sarif-2.1.0.json",
        "version": "2.1.0",
        "runs": [
            {
                "tool": {"driver": {"name": "scverify", "version": tool_version, "rules": rules}},
                "results": results,
            }
        ],
    }


def _region(issue: NormalizedIssue) -> dict:
    # SARIF columns are 1-based; unknown positions get no region at all
    if issue.line < 1:
        return {}
    region = {"startLine": issue.line, "startColumn": issue.column + 1}
    if issue.end_line >= 1:
        region["endLine"] = issue.end_line
        region["endColumn"] = issue.end_column + 1
    return {"region": region}


def _fingerprint(rule_id: str, file_path: str, line: int, column: int) -> str:
    value = f"{rule_id}|{file_path}|{line}|{column}"
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def _level_for_severity(severity: int) -> str:
    if severity >= 3:
        return "error"
    if severity == 2:
        return "warning"
    return "note"
