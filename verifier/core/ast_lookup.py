from __future__ import annotations

from typing import Any, Iterator


def _walk(node: Any) -> Iterator[dict]:
    stack = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, dict):
            yield current
            stack.extend(reversed(list(current.values())))
        elif isinstance(current, list):
            stack.extend(reversed(current))


def _node_range(node: dict) -> tuple[int, int] | None:
    src = node.get("src")
    if not isinstance(src, str):
        return None
    parts = src.split(":")
    try:
        return int(parts[0]), int(parts[1])
    except (IndexError, ValueError):
        return None


def find_enclosing_node(ast: dict | None, node_type: str, start: int, length: int) -> dict | None:
    """Return the innermost compact-AST node of ``node_type`` whose range covers ``start:length``."""
    if not ast:
        return None
    found = None
    found_length = None
    for node in _walk(ast):
        if node.get("nodeType") != node_type:
            continue
        node_range = _node_range(node)
        if node_range is None:
            continue
        node_start, node_length = node_range
        if node_start <= start and node_start + node_length >= start + length:
            if found_length is None or node_length <= found_length:
                found = node
                found_length = node_length
    return found


def is_dynamic_array(node: dict) -> bool:
    """True for a public state variable declared as a dynamically-sized array."""
    if not node.get("stateVariable") or node.get("visibility") != "public":
        return False
    type_name = node.get("typeName") or {}
    if type_name.get("nodeType") != "ArrayTypeName":
        return False
    return type_name.get("length") is None
