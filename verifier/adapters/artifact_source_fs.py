from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from verifier.core.models import CompiledArtifact


logger = logging.getLogger(__name__)


@dataclass
class BuildDirectoryArtifactSource:
    """Read truffle ``build/contracts/*.json`` files."""
    build_dir: str = "build/contracts"

    def load(self) -> list[CompiledArtifact]:
        """Load every contract build file, sorted by file name.

        Raises:
            FileNotFoundError: The build directory does not exist.
        """
        base = Path(self.build_dir)
        if not base.is_dir():
            raise FileNotFoundError(f"Build directory not found: {base}")
        artifacts = []
        for path in sorted(base.glob("*.json")):
            data = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(data, dict) or "contractName" not in data:
                logger.debug("Skipping %s: not a contract build file", path)
                continue
            artifacts.append(CompiledArtifact.from_build_json(data))
        return artifacts
