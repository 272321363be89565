"""Map raw compiler diagnostics onto 1-based source positions.

A position is the line whose start is the last line start at or before the
offset, so an offset that points exactly at a ``\\n`` lands at the end of that
line (column = line length + 1) rather than at the start of the next one.

Offsets count characters or, for standard-JSON compiler output, UTF-8 bytes.
Byte offsets are resolved against the encoded source; reported columns always
count characters.
"""

from bisect import bisect_right
from collections.abc import Iterable, Sequence

from contract_studio.models import Diagnostic, OffsetUnit, RawDiagnostic


def line_starts(source_text: str) -> list[int]:
    """Return the offset at which every line of *source_text* begins."""
    starts = [0]
    index = source_text.find("\n")
    while index != -1:
        starts.append(index + 1)
        index = source_text.find("\n", index + 1)
    return starts


def byte_line_starts(source_bytes: bytes) -> list[int]:
    starts = [0]
    index = source_bytes.find(b"\n")
    while index != -1:
        starts.append(index + 1)
        index = source_bytes.find(b"\n", index + 1)
    return starts


def offset_to_position(offset: int, starts: Sequence[int], text_length: int) -> tuple[int, int]:
    clamped = min(max(offset, 0), text_length)
    line = bisect_right(starts, clamped)
    column = clamped - starts[line - 1] + 1
    return line, column


def byte_offset_to_position(offset: int, starts: Sequence[int], source_bytes: bytes) -> tuple[int, int]:
    clamped = min(max(offset, 0), len(source_bytes))
    line = bisect_right(starts, clamped)
    # An offset inside a multi-byte sequence counts the partial character as not yet reached.
    prefix = source_bytes[starts[line - 1] : clamped].decode("utf-8", errors="ignore")
    return line, len(prefix) + 1


def normalize(raw_diagnostics: Iterable[RawDiagnostic], source_text: str) -> list[Diagnostic]:
    starts = line_starts(source_text)
    source_bytes: bytes | None = None
    byte_starts: list[int] = []
    diagnostics: list[Diagnostic] = []

    for raw in raw_diagnostics:
        if raw.offset is not None and raw.offset_unit is OffsetUnit.BYTE:
            if source_bytes is None:
                source_bytes = source_text.encode("utf-8")
                byte_starts = byte_line_starts(source_bytes)
            line, column = byte_offset_to_position(raw.offset, byte_starts, source_bytes)
        elif raw.offset is not None:
            line, column = offset_to_position(raw.offset, starts, len(source_text))
        elif raw.line is not None:
            line, column = raw.line, raw.column if raw.column is not None else 1
        else:
            line, column = 1, 1

        diagnostics.append(
            Diagnostic(
                severity=raw.severity,
                message=raw.message,
                contract_name=raw.contract_name or None,
                line=line,
                column=column,
                is_formal_verification=raw.formal,
            )
        )

    return diagnostics


def editor_annotations(diagnostics: Iterable[Diagnostic]) -> list[Diagnostic]:
    """Diagnostics the editor gutter shows: those not scoped to a single contract."""
    return [d for d in diagnostics if d.contract_name is None]
