from verifier.core.contract_report import ContractReport, DecodingContext
from verifier.core.models import parse_findings


def test_decoding_context_is_reproducible(make_artifact) -> None:
    first = DecodingContext.from_artifact(make_artifact())
    second = DecodingContext.from_artifact(make_artifact())

    assert first.offset_table == second.offset_table
    assert first.deployed_entries == second.deployed_entries
    assert first.line_tables == second.line_tables
    assert len(first.offset_table) == 17
    assert len(first.deployed_entries) == 13


def test_empty_findings_give_empty_report(store_artifact) -> None:
    report = ContractReport(store_artifact)
    report.set_findings([])

    assert report.to_normalized_issues(space_limited=False) == []
    assert report.error_count == 0
    assert report.warning_count == 0
    assert report.file_path == "/project/contracts/store.sol"


def test_set_findings_replaces_previous_findings(store_artifact, issues_response) -> None:
    report = ContractReport(store_artifact)
    findings = parse_findings(issues_response)

    report.set_findings(findings, job_id="job-1")
    report.set_findings(findings)

    assert report.warning_count == 2
    assert report.error_count == 0
    assert report.job_id == "job-1"

    report.set_findings(findings[:1], job_id="job-2")
    assert report.warning_count == 1
    assert report.job_id == "job-2"


def test_normalized_issues_follow_finding_order(store_artifact, issues_response) -> None:
    report = ContractReport(store_artifact)
    report.set_findings(parse_findings(issues_response))

    issues = report.to_normalized_issues(space_limited=False)

    assert [issue.rule_id for issue in issues] == ["SWC-103", "SWC-101"]
    pragma, overflow = issues
    assert (pragma.line, pragma.column, pragma.end_line, pragma.end_column) == (1, 0, 1, 23)
    assert pragma.severity == 1
    assert (overflow.line, overflow.column) == (7, 8)
    assert overflow.severity == 3
    assert overflow.message.endswith("It is possible to cause an arithmetic overflow.")


def test_suppressed_findings_are_not_counted(store_artifact, store_source, issues_response) -> None:
    decl = store_source.index("values;")
    issues_response[0]["issues"].append(
        {
            "swcID": "SWC-128",
            "swcTitle": "DoS With Block Gas Limit",
            "description": {"head": "Array may grow unbounded.", "tail": "Consider limiting it."},
            "severity": "Medium",
            "locations": [{"sourceMap": f"{decl}:6:0"}],
        }
    )
    report = ContractReport(store_artifact)
    report.set_findings(parse_findings(issues_response))

    issues = report.to_normalized_issues(space_limited=True)

    assert [issue.rule_id for issue in issues] == ["SWC-103", "SWC-101"]
    assert report.warning_count == 2


def test_file_path_falls_back_to_artifact(make_artifact) -> None:
    report = ContractReport(make_artifact(source_path="/elsewhere/token.sol"))

    assert report.file_path == "/elsewhere/token.sol"
    assert report.source_name == "token.sol"
