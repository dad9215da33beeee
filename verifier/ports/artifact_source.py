from __future__ import annotations

from typing import Protocol

from verifier.core.models import CompiledArtifact


class ArtifactSource(Protocol):
    """Provider of already-compiled contract artifacts."""
    def load(self) -> list[CompiledArtifact]:
        """Return every compiled artifact, one per contract name."""
        ...
