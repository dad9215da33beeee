from __future__ import annotations

from verifier.core.config import DEFAULT_TOOL_ID
from verifier.core.models import CompiledArtifact


BYTECODE_FIELDS = ("bytecode", "deployedBytecode")
SOURCE_MAP_FIELDS = ("sourceMap", "deployedSourceMap")


def build_request_payload(
    artifact: CompiledArtifact,
    mode: str = "quick",
    tool_id: str = DEFAULT_TOOL_ID,
) -> dict:
    """Shape an artifact into the analysis service's request data."""
    return {
        "contractName": artifact.contract_name,
        "bytecode": artifact.bytecode,
        "deployedBytecode": artifact.deployed_bytecode,
        "sourceMap": artifact.source_map,
        "deployedSourceMap": artifact.deployed_source_map,
        "sourceList": [artifact.source_path],
        "sources": {
            name: {"source": item.source, "ast": item.ast}
            for name, item in artifact.sources.items()
        },
        "toolId": tool_id,
        "version": artifact.compiler_version,
        "analysisMode": mode,
    }


def _is_empty_bytecode(value: str | None) -> bool:
    if not value:
        return True
    text = value[2:] if value.startswith("0x") else value
    return text.strip("0") == ""


def strip_empty_fields(payload: dict) -> tuple[dict, list[str]]:
    """Drop empty bytecode and source-map fields from a request payload.

    A contract with minor compile problems can still be analyzed from its
    source and AST, but the service complains about empty bytecode, so those
    fields are removed instead of being sent. Returns the cleaned payload and
    the names of the fields that were dropped.
    """
    result = dict(payload)
    dropped: list[str] = []
    for name in BYTECODE_FIELDS:
        if name in result and _is_empty_bytecode(result[name]):
            del result[name]
            dropped.append(name)
    for name in SOURCE_MAP_FIELDS:
        if name in result and not result[name]:
            del result[name]
            dropped.append(name)
    return result, dropped
