from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from verifier.core.ast_lookup import find_enclosing_node, is_dynamic_array
from verifier.core.errors import DecodeError
from verifier.core.models import BYTECODE_FORMAT, TEXT_FORMAT, NormalizedIssue, RawFinding
from verifier.core.srcmap import (
    UNKNOWN,
    LineColumn,
    decode_byte_offset,
    decode_source_entry,
    entry_at_index,
    instruction_at_offset,
    parse_source_entry,
)

if TYPE_CHECKING:
    from verifier.core.contract_report import DecodingContext


logger = logging.getLogger(__name__)

# The service grades more conservatively than lint-style reports: its
# "Medium" is our warning level 2 and anything below Medium is level 1.
SEVERITY_LEVELS = {
    "High": 3,
    "Medium": 2,
}

SPACE_LIMITED_STYLES = frozenset({"tap", "markdown", "json"})


def severity_level(label: str) -> int:
    return SEVERITY_LEVELS.get(label, 1)


def is_space_limited(style: str | None) -> bool:
    return style in SPACE_LIMITED_STYLES


def issue_message(finding: RawFinding, space_limited: bool) -> str:
    if space_limited:
        return finding.head
    return f"{finding.head} {finding.tail}"


def primary_range(finding: RawFinding, ctx: "DecodingContext") -> tuple[int, int] | None:
    """Character range of the first location of ``finding``.

    Only the start of the first location is used; secondary locations are
    not reported.

    Raises:
        DecodeError: The location cannot be mapped through the source map.
    """
    location = finding.primary_location
    if not location:
        return None
    try:
        if finding.source_format == BYTECODE_FORMAT:
            offset = int(location.split(":")[0])
            instruction = instruction_at_offset(ctx.offset_table, offset)
            entry = entry_at_index(ctx.deployed_entries, instruction)
            return entry.start, entry.length
        if finding.source_format == TEXT_FORMAT:
            return parse_source_entry(location.split(";")[0])
    except (ValueError, IndexError) as exc:
        raise DecodeError(f"malformed location {location!r}") from exc
    return None


def is_ignorable(
    finding: RawFinding,
    ctx: "DecodingContext",
    source_name: str,
    debug: int = 0,
    log: logging.Logger | None = None,
) -> bool:
    """Whether ``finding`` sits on a public dynamically-sized array declaration.

    The service reports a known class of false positives on those
    declarations, so such findings are dropped before reporting.
    """
    try:
        location = primary_range(finding, ctx)
    except DecodeError:
        return False
    if location is None:
        return False
    node = find_enclosing_node(ctx.asts.get(source_name), "VariableDeclaration", *location)
    if node is None or not is_dynamic_array(node):
        return False
    if debug:
        (log or logger).debug(
            "Ignoring %s issue around dynamically-allocated array %s",
            finding.swc_id,
            node.get("name"),
        )
    return True


def decode_positions(
    finding: RawFinding,
    ctx: "DecodingContext",
    source_name: str,
) -> tuple[LineColumn, LineColumn]:
    """Start/end position of the first location, or sentinels when unknown."""
    location = finding.primary_location
    if not location:
        return UNKNOWN, UNKNOWN
    table = ctx.line_table(source_name)
    try:
        if finding.source_format == BYTECODE_FORMAT:
            offset = int(location.split(":")[0])
            return decode_byte_offset(offset, ctx.offset_table, ctx.deployed_entries, table)
        if finding.source_format == TEXT_FORMAT:
            return decode_source_entry(location.split(";")[0], table)
    except DecodeError as exc:
        logger.debug("Unable to decode %s location %r: %s", finding.swc_id, location, exc)
    except (ValueError, IndexError):
        logger.debug("Malformed %s location %r", finding.swc_id, location)
    return UNKNOWN, UNKNOWN


def normalize(
    finding: RawFinding,
    ctx: "DecodingContext",
    source_name: str,
    space_limited: bool,
) -> NormalizedIssue:
    """Convert a service finding into a report-ready issue.

    Args:
        finding (RawFinding): Finding as returned by the service.
        ctx (DecodingContext): Decoding tables for the finding's artifact.
        source_name (str): Key of the source file the location refers to.
        space_limited (bool): Use the short description only.

    Returns:
        NormalizedIssue: Issue with sentinel positions when decoding fails.
    """
    start, end = decode_positions(finding, ctx, source_name)
    return NormalizedIssue(
        rule_id=finding.swc_id,
        message=issue_message(finding, space_limited),
        severity=severity_level(finding.severity),
        line=start.line,
        column=start.column,
        end_line=end.line,
        end_column=end.column,
        fatal=False,
        source_severity=finding.severity,
    )
