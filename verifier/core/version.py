from __future__ import annotations

import subprocess
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path


PACKAGE_NAME = "scverify"


def get_version() -> str:
    """Installed package version, the checkout's ``git describe``, or ``dev``."""
    try:
        return version(PACKAGE_NAME)
    except PackageNotFoundError:
        pass
    described = _describe_checkout()
    return described.removeprefix("v") if described else "dev"


def _describe_checkout() -> str | None:
    try:
        completed = subprocess.run(
            ["git", "describe", "--tags", "--always"],
            cwd=Path(__file__).resolve().parent,
            capture_output=True,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return None
    return completed.stdout.strip() or None


def version_string(data: dict) -> str:
    """Render the service's ``{component: version}`` mapping as ``a: 1, b: 2``."""
    return ", ".join(f"{key}: {data[key]}" for key in sorted(data))
