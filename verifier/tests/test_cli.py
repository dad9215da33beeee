import json

import pytest

from verifier.cli import scverify
from verifier.core.errors import TransportError
from verifier.core.models import AnalysisResponse, JobStatus


class FakeMythXClient:
    """Stands in for the HTTP client; built the same way the CLI builds it."""

    responses: dict = {}
    version_error: Exception | None = None

    def __init__(self, credentials=None, api_url=None, client_tool_name=None, **kwargs) -> None:
        self.credentials = credentials
        self.api_url = api_url

    def analyze(self, payload: dict, timeout_ms: int) -> AnalysisResponse:
        default = AnalysisResponse(issues=[], status=JobStatus(job_id="job-1", state="Finished"))
        return type(self).responses.get(payload["contractName"], default)

    def get_issues(self, job_id: str) -> list[dict]:
        return []

    def api_version(self) -> dict:
        if type(self).version_error is not None:
            raise type(self).version_error
        return {"api": "v1.4.0", "maru": "0.4.6"}


@pytest.fixture
def fake_client(monkeypatch):
    monkeypatch.setattr(scverify, "MythXClient", FakeMythXClient)
    monkeypatch.delenv("MYTHX_ETH_ADDRESS", raising=False)
    monkeypatch.delenv("MYTHX_PASSWORD", raising=False)
    FakeMythXClient.responses = {}
    FakeMythXClient.version_error = None
    return FakeMythXClient


@pytest.fixture
def build_dir(tmp_path, store_build_json):
    path = tmp_path / "build" / "contracts"
    path.mkdir(parents=True)
    for name in ("Store", "Vault"):
        data = dict(store_build_json, contractName=name)
        (path / f"{name}.json").write_text(json.dumps(data), encoding="utf-8")
    return path


def test_report_is_printed(fake_client, build_dir, capsys) -> None:
    code = scverify.main(["--build-dir", str(build_dir), "--no-progress", "--style", "json"])

    out = capsys.readouterr().out
    assert code == 0
    data = json.loads(out)
    assert data[0]["filePath"] == "/project/contracts/store.sol"


def test_unknown_contract_is_listed(fake_client, build_dir, capsys) -> None:
    code = scverify.main(["Store", "Ghost", "--build-dir", str(build_dir), "--no-progress"])

    err = capsys.readouterr().err
    assert code == 0
    assert "These smart contracts were not found: Ghost" in err


def test_failed_contract_sets_exit_code(fake_client, build_dir, capsys) -> None:
    fake_client.responses = {
        "Vault": AnalysisResponse(issues=[], status=JobStatus(job_id="j", state="Error", payload={"error": "boom"}))
    }

    code = scverify.main(["--build-dir", str(build_dir), "--no-progress"])

    err = capsys.readouterr().err
    assert code == 1
    assert "Internal MythX errors encountered:" in err
    assert "Vault: boom" in err


@pytest.mark.parametrize("argv", [["--limit", "9"], ["--timeout", "0"], ["--limit", "-1"]])
def test_invalid_settings_exit_before_submission(fake_client, build_dir, capsys, argv) -> None:
    code = scverify.main(["--build-dir", str(build_dir), "--no-progress", *argv])

    assert code == 2
    assert capsys.readouterr().out == ""


def test_unknown_style_is_rejected_by_the_parser(fake_client) -> None:
    with pytest.raises(SystemExit) as exc:
        scverify.main(["--style", "xml"])

    assert exc.value.code == 2


def test_missing_build_directory(fake_client, tmp_path, capsys) -> None:
    code = scverify.main(["--build-dir", str(tmp_path / "nope"), "--no-progress"])

    assert code == 2
    assert "Build directory not found" in capsys.readouterr().err


def test_config_file_is_layered_under_flags(fake_client, build_dir, tmp_path, capsys) -> None:
    config = tmp_path / "scverify.yaml"
    config.write_text(f"style: unix\nprogress: false\nbuild_dir: {build_dir}\n", encoding="utf-8")

    code = scverify.main(["--config", str(config), "--style", "json"])

    assert code == 0
    assert json.loads(capsys.readouterr().out)[0]["messages"] == []


def test_version_prints_package_and_service_versions(fake_client, capsys) -> None:
    code = scverify.main(["--version"])

    out = capsys.readouterr().out
    assert code == 0
    assert out.startswith("scverify ")
    assert "api: v1.4.0, maru: 0.4.6" in out


def test_version_reports_unreachable_service(fake_client, capsys) -> None:
    fake_client.version_error = TransportError("GET /version failed")

    code = scverify.main(["--version"])

    assert code == 1
    assert "GET /version failed" in capsys.readouterr().err


def test_debug_flag_levels() -> None:
    parser = scverify.build_parser()

    assert parser.parse_args([]).debug is None
    assert parser.parse_args(["--debug"]).debug == 1
    assert parser.parse_args(["--debug=2"]).debug == 2


def test_version_ignores_credentials_and_config(fake_client, monkeypatch, tmp_path, capsys) -> None:
    monkeypatch.setenv("MYTHX_PASSWORD", "only-half-configured")
    config = tmp_path / "scverify.yaml"
    config.write_text("limit: 3\n", encoding="utf-8")

    code = scverify.main(["--version", "--config", str(config)])

    assert code == 0
    assert "api: v1.4.0, maru: 0.4.6" in capsys.readouterr().out
