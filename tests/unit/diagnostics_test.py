"""Tests for mapping compiler diagnostics onto source positions."""

from contract_studio.core.diagnostics import (
    byte_line_starts,
    byte_offset_to_position,
    editor_annotations,
    line_starts,
    normalize,
    offset_to_position,
)
from contract_studio.models import Diagnostic, OffsetUnit, RawDiagnostic, Severity

SOURCE = "pragma solidity ^0.4.11;\ncontract A {\n  uint x\n}\n"


class TestLineStarts:
    def test_single_line(self) -> None:
        assert line_starts("contract A {}") == [0]

    def test_trailing_newline_opens_empty_line(self) -> None:
        assert line_starts("a\nbc\n") == [0, 2, 5]

    def test_empty_text(self) -> None:
        assert line_starts("") == [0]


class TestOffsetToPosition:
    def test_start_of_text(self) -> None:
        assert offset_to_position(0, line_starts(SOURCE), len(SOURCE)) == (1, 1)

    def test_start_of_second_line(self) -> None:
        assert offset_to_position(25, line_starts(SOURCE), len(SOURCE)) == (2, 1)

    def test_offset_at_newline_maps_to_end_of_that_line(self) -> None:
        newline = SOURCE.index("\n")
        assert offset_to_position(newline, line_starts(SOURCE), len(SOURCE)) == (1, newline + 1)

    def test_offset_after_newline_maps_to_next_line(self) -> None:
        newline = SOURCE.index("\n")
        assert offset_to_position(newline + 1, line_starts(SOURCE), len(SOURCE)) == (2, 1)

    def test_offset_past_end_is_clamped(self) -> None:
        starts = line_starts("ab\ncd")
        assert offset_to_position(99, starts, 5) == (2, 3)

    def test_negative_offset_is_clamped(self) -> None:
        assert offset_to_position(-4, [0], 10) == (1, 1)


class TestNormalize:
    def test_offset_diagnostic(self) -> None:
        raw = RawDiagnostic(message="Expected ';'", severity=Severity.ERROR, offset=SOURCE.index("}"))
        [diagnostic] = normalize([raw], SOURCE)
        assert diagnostic == Diagnostic(severity=Severity.ERROR, message="Expected ';'", line=4, column=1)

    def test_line_column_diagnostic_is_kept(self) -> None:
        raw = RawDiagnostic(message="Unused", severity=Severity.WARNING, line=3, column=7)
        [diagnostic] = normalize([raw], SOURCE)
        assert (diagnostic.line, diagnostic.column) == (3, 7)

    def test_positionless_diagnostic_points_at_file_start(self) -> None:
        [diagnostic] = normalize([RawDiagnostic(message="Internal compiler error")], SOURCE)
        assert (diagnostic.line, diagnostic.column) == (1, 1)
        assert diagnostic.contract_name is None

    def test_formal_flag_and_contract_name(self) -> None:
        raw = RawDiagnostic(message="Assertion may fail", formal=True, contract_name="A", offset=30)
        [diagnostic] = normalize([raw], SOURCE)
        assert diagnostic.is_formal_verification is True
        assert diagnostic.contract_name == "A"

    def test_one_output_per_input(self) -> None:
        raws = [RawDiagnostic(message=str(i), offset=i * 5) for i in range(6)]
        assert [d.message for d in normalize(raws, SOURCE)] == [str(i) for i in range(6)]

    def test_is_pure(self) -> None:
        raws = [
            RawDiagnostic(message="a", offset=24),
            RawDiagnostic(message="b", line=2, column=3, contract_name="A"),
            RawDiagnostic(message="c", formal=True),
        ]
        first = normalize(raws, SOURCE)
        second = normalize(raws, SOURCE)
        assert first == second
        assert raws[0].offset == 24

    def test_positions_follow_the_given_text(self) -> None:
        raw = RawDiagnostic(message="x", offset=5)
        assert normalize([raw], "0123456789")[0].line == 1
        assert normalize([raw], "0\n2\n4\n6")[0].line == 3


ACCENTED = "// café über naïve\ncontract A {\n  uint x\n}\n"


def _byte_offset(text: str, needle: str) -> int:
    return len(text[: text.index(needle)].encode("utf-8"))


class TestByteOffsets:
    def test_column_counts_characters_after_multibyte_text(self) -> None:
        raw = RawDiagnostic(message="Expected ';'", offset=_byte_offset(ACCENTED, "uint"), offset_unit=OffsetUnit.BYTE)
        [diagnostic] = normalize([raw], ACCENTED)
        assert (diagnostic.line, diagnostic.column) == (3, 3)

    def test_offset_on_the_same_line_as_multibyte_text(self) -> None:
        raw = RawDiagnostic(message="x", offset=_byte_offset(ACCENTED, "naïve"), offset_unit=OffsetUnit.BYTE)
        [diagnostic] = normalize([raw], ACCENTED)
        assert (diagnostic.line, diagnostic.column) == (1, ACCENTED.index("naïve") + 1)

    def test_many_multibyte_lines_do_not_shift_the_line(self) -> None:
        text = "// ééééé\n" * 4 + "contract A {}\n"
        raw = RawDiagnostic(message="x", offset=_byte_offset(text, "contract"), offset_unit=OffsetUnit.BYTE)
        [diagnostic] = normalize([raw], text)
        assert (diagnostic.line, diagnostic.column) == (5, 1)

    def test_offset_inside_a_multibyte_character(self) -> None:
        data = "é".encode("utf-8")
        assert byte_offset_to_position(1, byte_line_starts(data), data) == (1, 1)

    def test_byte_offset_past_end_is_clamped(self) -> None:
        data = "ab\nçd".encode("utf-8")
        assert byte_offset_to_position(99, byte_line_starts(data), data) == (2, 3)

    def test_ascii_text_matches_character_offsets(self) -> None:
        offset = SOURCE.index("}")
        as_bytes = RawDiagnostic(message="x", offset=offset, offset_unit=OffsetUnit.BYTE)
        as_chars = RawDiagnostic(message="x", offset=offset)
        assert normalize([as_bytes], SOURCE) == normalize([as_chars], SOURCE)


def test_editor_annotations_drop_contract_scoped_diagnostics() -> None:
    diagnostics = [
        Diagnostic(severity=Severity.ERROR, message="file", line=1, column=1),
        Diagnostic(severity=Severity.ERROR, message="scoped", contract_name="A", line=1, column=1),
    ]
    assert [d.message for d in editor_annotations(diagnostics)] == ["file"]
