from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Mapping, Union

import yaml

from verifier.core.errors import ConfigurationError


MAX_RATE_LIMIT = 4
DEFAULT_RATE_LIMIT = 4
MODE_TIMEOUTS_S = {"quick": 120, "full": 300}
DEFAULT_API_URL = "https://api.mythx.io/v1"
ANALYSIS_MODES = tuple(MODE_TIMEOUTS_S)
DEFAULT_TOOL_ID = "truffle"

TRIAL_ETH_ADDRESS = "0x0000000000000000000000000000000000000000"
TRIAL_PASSWORD = "trial"


@dataclass(frozen=True)
class Anonymous:
    """Shared trial identity used when no credentials are configured."""
    address: str = TRIAL_ETH_ADDRESS
    password: str = TRIAL_PASSWORD


@dataclass(frozen=True)
class Authenticated:
    address: str
    password: str


Credentials = Union[Anonymous, Authenticated]


def resolve_credentials(env: Mapping[str, str] | None = None) -> Credentials:
    """Pick the service identity from ``MYTHX_ETH_ADDRESS``/``MYTHX_PASSWORD``.

    Raises:
        ConfigurationError: Only one of the two variables is set.
    """
    env = os.environ if env is None else env
    address = env.get("MYTHX_ETH_ADDRESS") or None
    password = env.get("MYTHX_PASSWORD") or None
    if address and password:
        return Authenticated(address=address, password=password)
    if address or password:
        raise ConfigurationError("MYTHX_ETH_ADDRESS and MYTHX_PASSWORD must be set together")
    return Anonymous()


def default_timeout(mode: str) -> int:
    """Seconds an analysis may take when no timeout is configured."""
    return MODE_TIMEOUTS_S.get(mode, MODE_TIMEOUTS_S["full"])


def check_rate_limit(value: object) -> int:
    """Validate the number of analyses allowed in flight at once.

    ``0`` selects the default limit.

    Raises:
        ConfigurationError: The value is not an integer in ``[0, MAX_RATE_LIMIT]``.
    """
    if isinstance(value, bool):
        raise ConfigurationError(f"limit parameter should be a number; got {value}.")
    try:
        limit = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise ConfigurationError(f"limit parameter should be a number; got {value}.") from None
    if isinstance(value, float) and value != limit:
        raise ConfigurationError(f"limit parameter should be a number; got {value}.")
    if limit < 0 or limit > MAX_RATE_LIMIT:
        raise ConfigurationError(f"limit should be between 0 and {MAX_RATE_LIMIT}; got {limit}.")
    return limit or DEFAULT_RATE_LIMIT


@dataclass
class VerifyConfig:
    rate_limit: int = DEFAULT_RATE_LIMIT
    timeout_s: int | None = None
    mode: str = "quick"
    style: str = "stylish"
    progress: bool = True
    debug: int = 0
    job_id: str | None = None
    build_dir: str = "build/contracts"
    api_url: str = DEFAULT_API_URL
    client_tool_name: str = DEFAULT_TOOL_ID

    @staticmethod
    def from_file(path: str) -> "VerifyConfig":
        ext = Path(path).suffix.lower()
        with open(path, "r", encoding="utf-8") as handle:
            if ext in {".yaml", ".yml"}:
                data = yaml.safe_load(handle) or {}
            elif ext == ".json":
                data = json.load(handle)
            else:
                raise ConfigurationError(f"Unsupported config file extension: {ext}")
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
        return VerifyConfig.from_dict(data)

    @staticmethod
    def from_dict(data: Mapping[str, object]) -> "VerifyConfig":
        known = {item.name for item in fields(VerifyConfig)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown config key(s): {', '.join(unknown)}")
        return VerifyConfig(**data)  # type: ignore[arg-type]

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> "VerifyConfig":
        """Baseline config from ``SCVERIFY_*`` environment variables."""
        env = os.environ if env is None else env
        config = VerifyConfig()
        if env.get("SCVERIFY_API_URL"):
            config.api_url = env["SCVERIFY_API_URL"]
        if env.get("SCVERIFY_BUILD_DIR"):
            config.build_dir = env["SCVERIFY_BUILD_DIR"]
        if env.get("SCVERIFY_PROGRESS"):
            config.progress = env["SCVERIFY_PROGRESS"].lower() in {"1", "true", "yes"}
        return config

    def validate(self) -> None:
        """Check every setting before any submission is made.

        Raises:
            ConfigurationError: A setting is out of range.
        """
        from verifier.core.formatters import STYLES

        self.rate_limit = check_rate_limit(self.rate_limit)
        if self.mode not in ANALYSIS_MODES:
            raise ConfigurationError(f"mode should be one of {', '.join(ANALYSIS_MODES)}; got {self.mode}.")
        if self.timeout_s is None:
            self.timeout_s = default_timeout(self.mode)
        try:
            self.timeout_s = int(self.timeout_s)
        except (TypeError, ValueError):
            raise ConfigurationError(f"timeout should be a number of seconds; got {self.timeout_s}.") from None
        if self.timeout_s <= 0:
            raise ConfigurationError(f"timeout should be positive; got {self.timeout_s}.")
        if self.style not in STYLES:
            raise ConfigurationError(f"Unsupported style: {self.style}")
        try:
            self.debug = int(self.debug)
        except (TypeError, ValueError):
            raise ConfigurationError(f"debug should be a number; got {self.debug}.") from None

    @property
    def timeout_ms(self) -> int:
        timeout_s = default_timeout(self.mode) if self.timeout_s is None else self.timeout_s
        return int(timeout_s) * 1000
