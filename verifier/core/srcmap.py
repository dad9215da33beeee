from __future__ import annotations

"""Bytecode offset and compiler source-map decoding.

Source maps index by instruction number, not by byte offset, so a bytecode
offset is first turned into an instruction number, then into a character
range, then into a line/column pair.
"""

import re
from bisect import bisect_right
from dataclasses import dataclass

from verifier.core.errors import NoInstructionAtOffset, NoSourceMapEntry


PUSH1 = 0x60
PUSH32 = 0x7F

_HEX_PAIR = re.compile(r"^[0-9a-fA-F]{2}$")


@dataclass(frozen=True)
class SourceMapEntry:
    start: int
    length: int
    file_index: int
    jump: str = "-"


@dataclass(frozen=True)
class LineColumn:
    """1-indexed line, 0-indexed column."""
    line: int
    column: int


UNKNOWN = LineColumn(line=-1, column=0)


def _bytecode_bytes(bytecode: str) -> list[int]:
    text = bytecode[2:] if bytecode.startswith("0x") else bytecode
    values = []
    for index in range(0, len(text) - 1, 2):
        pair = text[index:index + 2]
        # unlinked library placeholders are not hex
        values.append(int(pair, 16) if _HEX_PAIR.match(pair) else 0)
    return values


def make_offset_to_instruction(bytecode: str) -> tuple[int, ...]:
    """Map every byte offset of ``bytecode`` to the instruction that owns it.

    PUSH data bytes belong to their PUSH instruction. The result is a tuple
    indexed by byte offset.
    """
    code = _bytecode_bytes(bytecode)
    table: list[int] = []
    offset = 0
    instruction = 0
    while offset < len(code):
        opcode = code[offset]
        size = 1
        if PUSH1 <= opcode <= PUSH32:
            size += opcode - PUSH1 + 1
        size = min(size, len(code) - offset)
        table.extend([instruction] * size)
        offset += size
        instruction += 1
    return tuple(table)


def instruction_at_offset(table: tuple[int, ...], offset: int) -> int:
    if offset < 0 or offset >= len(table):
        raise NoInstructionAtOffset(offset)
    return table[offset]


def parse_source_map(source_map: str) -> tuple[SourceMapEntry, ...]:
    """Expand a compressed source map into one entry per instruction.

    An empty field repeats the value from the previous entry; a field that
    is not a number is recorded as ``-1``.
    """
    if not source_map:
        return ()
    entries: list[SourceMapEntry] = []
    last = SourceMapEntry(start=-1, length=-1, file_index=-1)
    for raw in source_map.split(";"):
        fields = raw.split(":")
        start = _field(fields, 0, last.start)
        length = _field(fields, 1, last.length)
        file_index = _field(fields, 2, last.file_index)
        jump = fields[3] if len(fields) > 3 and fields[3] else last.jump
        last = SourceMapEntry(start=start, length=length, file_index=file_index, jump=jump)
        entries.append(last)
    return tuple(entries)


def _field(fields: list[str], index: int, previous: int) -> int:
    if index >= len(fields) or fields[index] == "":
        return previous
    try:
        return int(fields[index])
    except ValueError:
        # negative start/length decodes to the unknown position
        return -1


def entry_at_index(entries: tuple[SourceMapEntry, ...], index: int) -> SourceMapEntry:
    if index < 0 or index >= len(entries):
        raise NoSourceMapEntry(index, len(entries))
    return entries[index]


def parse_source_entry(entry: str) -> tuple[int, int]:
    """Return ``(start, length)`` from a single ``s:l:f[:j]`` entry."""
    fields = entry.split(":")
    return int(fields[0]), int(fields[1])


def line_starts(source: str) -> tuple[int, ...]:
    """Character offsets at which each line of ``source`` begins."""
    starts = [0]
    position = source.find("\n")
    while position >= 0:
        starts.append(position + 1)
        position = source.find("\n", position + 1)
    return tuple(starts)


def offset_to_line_column(offset: int, table: tuple[int, ...]) -> LineColumn | None:
    if offset < 0 or not table or offset < table[0]:
        return None
    index = bisect_right(table, offset) - 1
    return LineColumn(line=index + 1, column=offset - table[index])


def range_to_positions(start: int, length: int, table: tuple[int, ...]) -> tuple[LineColumn, LineColumn]:
    """Convert a character range to start/end positions.

    Either end that cannot be decoded comes back as ``UNKNOWN``.
    """
    if start < 0 or length < 0:
        return UNKNOWN, UNKNOWN
    begin = offset_to_line_column(start, table) or UNKNOWN
    end = offset_to_line_column(start + length, table) or UNKNOWN
    return begin, end


def decode_byte_offset(
    offset: int,
    offset_table: tuple[int, ...],
    entries: tuple[SourceMapEntry, ...],
    table: tuple[int, ...],
) -> tuple[LineColumn, LineColumn]:
    """Decode a deployed-bytecode offset.

    Raises:
        NoInstructionAtOffset: The offset is outside the bytecode.
        NoSourceMapEntry: The instruction has no source-map entry.
    """
    instruction = instruction_at_offset(offset_table, offset)
    entry = entry_at_index(entries, instruction)
    return range_to_positions(entry.start, entry.length, table)


def decode_source_entry(entry: str, table: tuple[int, ...]) -> tuple[LineColumn, LineColumn]:
    start, length = parse_source_entry(entry)
    return range_to_positions(start, length, table)
