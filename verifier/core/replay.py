from __future__ import annotations

import yaml


def render_replay(groups: list[dict]) -> str:
    """Plain listing of a previous job's issues, one YAML document per issue."""
    if not groups:
        return "No issues found"
    lines = []
    for group in groups:
        lines.append(", ".join(group.get("sourceList") or []))
        for issue in group.get("issues") or []:
            lines.append(yaml.safe_dump(issue, sort_keys=True).rstrip())
    return "\n".join(lines)
