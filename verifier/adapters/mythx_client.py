from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable

import requests

from verifier.core.config import DEFAULT_API_URL, DEFAULT_TOOL_ID, Anonymous, Credentials
from verifier.core.errors import TransportError
from verifier.core.models import AnalysisResponse, JobStatus


logger = logging.getLogger(__name__)

TERMINAL_STATES = {"Finished", "Error"}
REQUEST_TIMEOUT_S = 30.0


class MythXClient:
    """HTTP client for a MythX-style analysis API.

    A submission is posted, then polled until the job reaches a terminal
    state or the caller's timeout runs out. Transport problems of any kind
    surface as ``TransportError`` so callers only handle one exception type.
    """

    def __init__(
        self,
        credentials: Credentials | None = None,
        api_url: str = DEFAULT_API_URL,
        client_tool_name: str = DEFAULT_TOOL_ID,
        poll_interval_s: float = 3.0,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.credentials = credentials or Anonymous()
        self.api_url = api_url.rstrip("/")
        self.client_tool_name = client_tool_name
        self.poll_interval_s = poll_interval_s
        self.session = session or requests.Session()
        self.sleep = sleep
        self.clock = clock
        self._token: str | None = None
        self._lock = threading.Lock()

    def login(self) -> str:
        data = self._request(
            "POST",
            "/auth/login",
            auth=False,
            json={"ethAddress": self.credentials.address, "password": self.credentials.password},
        )
        token = data.get("jwtTokens", data).get("access") if isinstance(data, dict) else None
        if not token:
            raise TransportError("login response did not contain an access token")
        self._token = token
        return token

    def analyze(self, payload: dict, timeout_ms: int) -> AnalysisResponse:
        deadline = self.clock() + timeout_ms / 1000
        submitted = self._request(
            "POST",
            "/analyses",
            json={"clientToolName": self.client_tool_name, "data": payload},
        )
        job_id = submitted.get("uuid")
        if not job_id:
            raise TransportError("analysis submission did not return a job id")
        logger.debug("Submitted %s as job %s", payload.get("contractName"), job_id)

        status = submitted
        while status.get("status") not in TERMINAL_STATES:
            remaining = deadline - self.clock()
            if remaining <= 0:
                raise TransportError(f"Timed out waiting for analysis {job_id} after {timeout_ms // 1000}s")
            self.sleep(min(self.poll_interval_s, remaining))
            status = self._request("GET", f"/analyses/{job_id}")

        state = str(status.get("status"))
        if state == "Error":
            return AnalysisResponse(issues=[], status=JobStatus(job_id=job_id, state=state, payload=status))
        issues = self.get_issues(job_id)
        return AnalysisResponse(issues=issues, status=JobStatus(job_id=job_id, state=state, payload=status))

    def get_issues(self, job_id: str) -> list[dict]:
        data = self._request("GET", f"/analyses/{job_id}/issues")
        if not isinstance(data, list):
            raise TransportError(f"unexpected issues response for job {job_id}")
        return data

    def api_version(self) -> dict:
        return self._request("GET", "/version", auth=False)

    def _authorization(self) -> dict:
        with self._lock:
            if self._token is None:
                self.login()
            return {"Authorization": f"Bearer {self._token}"}

    def _request(self, method: str, path: str, auth: bool = True, **kwargs: Any) -> Any:
        headers = self._authorization() if auth else {}
        url = f"{self.api_url}{path}"
        try:
            response = self.session.request(method, url, headers=headers, timeout=REQUEST_TIMEOUT_S, **kwargs)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(f"{method} {path} returned invalid JSON") from exc
