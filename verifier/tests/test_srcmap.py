import pytest

from verifier.core.errors import NoInstructionAtOffset, NoSourceMapEntry
from verifier.core.srcmap import (
    UNKNOWN,
    LineColumn,
    SourceMapEntry,
    decode_byte_offset,
    decode_source_entry,
    entry_at_index,
    instruction_at_offset,
    line_starts,
    make_offset_to_instruction,
    offset_to_line_column,
    parse_source_map,
    range_to_positions,
)


def test_offset_table_maps_push_data_to_its_instruction() -> None:
    # PUSH1 80, PUSH1 40, MSTORE, PUSH2 0102, STOP
    table = make_offset_to_instruction("0x608060405261010200")

    assert table == (0, 0, 1, 1, 2, 3, 3, 3, 4)


def test_offset_table_without_prefix_matches_prefixed() -> None:
    assert make_offset_to_instruction("6080") == make_offset_to_instruction("0x6080")


def test_offset_table_tolerates_truncated_push_and_placeholders() -> None:
    # PUSH32 with only two data bytes left
    assert make_offset_to_instruction("0x7f0102") == (0, 0, 0)
    # unlinked library placeholder bytes decode as STOP
    assert make_offset_to_instruction("0x__Lib___00") == (0, 1, 2, 3, 4)


def test_instruction_at_offset_rejects_out_of_range() -> None:
    table = make_offset_to_instruction("0x6080")

    assert instruction_at_offset(table, 1) == 0
    with pytest.raises(NoInstructionAtOffset):
        instruction_at_offset(table, 2)
    with pytest.raises(NoInstructionAtOffset):
        instruction_at_offset(table, -1)


def test_parse_source_map_inherits_empty_fields() -> None:
    entries = parse_source_map("1:2:0:-;:5;;7::1:i;::")

    assert entries == (
        SourceMapEntry(1, 2, 0, "-"),
        SourceMapEntry(1, 5, 0, "-"),
        SourceMapEntry(1, 5, 0, "-"),
        SourceMapEntry(7, 5, 1, "i"),
        SourceMapEntry(7, 5, 1, "i"),
    )


def test_parse_source_map_empty_string() -> None:
    assert parse_source_map("") == ()


def test_entry_at_index_past_the_end() -> None:
    entries = parse_source_map("1:2:0;3:4:0")

    assert entry_at_index(entries, 1).start == 3
    with pytest.raises(NoSourceMapEntry) as exc:
        entry_at_index(entries, 2)
    assert exc.value.count == 2


def test_line_starts() -> None:
    assert line_starts("") == (0,)
    assert line_starts("ab\ncd\n\nx") == (0, 3, 6, 7)


def test_offset_after_second_line_start_is_on_line_two() -> None:
    table = (0, 9, 20)

    assert offset_to_line_column(10, table) == LineColumn(line=2, column=1)
    assert offset_to_line_column(9, table) == LineColumn(line=2, column=0)
    assert offset_to_line_column(0, table) == LineColumn(line=1, column=0)
    assert offset_to_line_column(25, table) == LineColumn(line=3, column=5)


def test_degenerate_inputs_return_sentinel() -> None:
    assert offset_to_line_column(5, ()) is None
    assert range_to_positions(5, 2, ()) == (UNKNOWN, UNKNOWN)
    assert range_to_positions(-1, 2, (0, 4)) == (UNKNOWN, UNKNOWN)
    assert range_to_positions(2, -1, (0, 4)) == (UNKNOWN, UNKNOWN)


def test_decoded_lines_are_positive_or_sentinel() -> None:
    source = "line one\nline two\n\nline four is longer\nend"
    table = line_starts(source)
    for start in range(-2, len(source) + 3):
        for length in (-1, 0, 1, 7):
            begin, end = range_to_positions(start, length, table)
            for position in (begin, end):
                assert position == UNKNOWN or (position.line >= 1 and position.column >= 0)


def test_both_entry_styles_agree(store_artifact, store_source) -> None:
    table = line_starts(store_source)
    offsets = make_offset_to_instruction(store_artifact.deployed_bytecode)
    entries = parse_source_map(store_artifact.deployed_source_map)
    push = store_source.index("values.push(v)")

    from_offset = decode_byte_offset(10, offsets, entries, table)
    from_entry = decode_source_entry(f"{push}:14:0", table)

    assert from_offset == from_entry
    assert from_entry[0] == LineColumn(line=7, column=8)
    assert from_entry[1] == LineColumn(line=7, column=22)


def test_decode_byte_offset_without_source_map_entry(store_artifact, store_source) -> None:
    offsets = make_offset_to_instruction(store_artifact.deployed_bytecode)
    entries = parse_source_map("1:1:0;2:2:0")

    with pytest.raises(NoSourceMapEntry):
        decode_byte_offset(10, offsets, entries, line_starts(store_source))


def test_unparsable_fields_decode_to_unknown_position() -> None:
    entries = parse_source_map("1:2:0;x:y:z;;4:1:0")

    assert entries[1] == SourceMapEntry(-1, -1, -1, "-")
    assert entries[2] == SourceMapEntry(-1, -1, -1, "-")
    assert entries[3] == SourceMapEntry(4, 1, 0, "-")
    table = line_starts("abc\ndef\n")
    offsets = make_offset_to_instruction("0x00000000")
    assert decode_byte_offset(1, offsets, entries, table) == (UNKNOWN, UNKNOWN)
    assert decode_byte_offset(3, offsets, entries, table) == (LineColumn(2, 0), LineColumn(2, 1))
