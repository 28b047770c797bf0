"""Tests for burst reassembly from classified trace lines."""

import sys
from pathlib import Path
from typing import List

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from trace2pcap.parser.assembler import (
    LENGTH_MISMATCH,
    SKIPPED_MALFORMED,
    SKIPPED_OFFSET,
    ChunkAssembler,
    Flush,
)
from trace2pcap.parser.grammar import classify_line
from trace2pcap.tcp.state import Direction


def _dump(data: bytes, start: int = 0) -> List[str]:
    lines = []
    for index in range(0, len(data), 16):
        chunk = data[index:index + 16]
        hex_area = "".join(f"{byte:02x} " for byte in chunk).ljust(48)
        gutter = "".join(chr(byte) if 0x20 <= byte < 0x7F else "." for byte in chunk)
        lines.append(f"{start + index:04x}: {hex_area}{gutter}")
    return lines


def _marker(arrow: str, length: int) -> str:
    verb = "Send" if arrow == "=>" else "Recv"
    return f"{arrow} {verb} data, {length} bytes (0x{length:x})"


def _run(lines: List[str]) -> tuple:
    assembler = ChunkAssembler()
    return list(assembler.feed(lines)), assembler


def test_single_send_burst() -> None:
    flushes, assembler = _run([_marker("=>", 5), *_dump(b"hello")])

    assert flushes == [Flush(direction=Direction.OUTBOUND, payload=b"hello", declared_length=5)]
    assert assembler.diagnostics == []


def test_multi_line_burst_flushes_on_short_line() -> None:
    body = b"HTTP/1.1 200 OK\r\nContent-Length: 0\r\n\r\n"
    assembler = ChunkAssembler()

    results = [assembler.observe(classify_line(line)) for line in [_marker("<=", len(body)), *_dump(body)]]

    assert results[:-1] == [[], [], []]
    assert results[-1] == [Flush(direction=Direction.INBOUND, payload=body, declared_length=len(body))]
    assert assembler.diagnostics == []


def test_unexpected_offset_is_skipped_without_state_change() -> None:
    assembler = ChunkAssembler()
    assembler.observe(classify_line(_marker("=>", 32)))
    assembler.observe(classify_line(_dump(b"A" * 16)[0]))
    before = (bytes(assembler.burst.data), assembler.burst.next_expected_offset)

    result = assembler.observe(classify_line(_dump(b"B" * 16, start=0x30)[0]))

    assert result == []
    assert (bytes(assembler.burst.data), assembler.burst.next_expected_offset) == before
    assert [diag.kind for diag in assembler.diagnostics] == [SKIPPED_OFFSET]
    assert assembler.diagnostics[0].line_number == 3


def test_malformed_line_is_not_appended() -> None:
    truncated = _dump(b"hello")[0][:-1]
    flushes, assembler = _run([_marker("=>", 5), truncated, *_dump(b"hello")])

    assert [flush.payload for flush in flushes] == [b"hello"]
    assert [diag.kind for diag in assembler.diagnostics] == [SKIPPED_MALFORMED]


def test_marker_preempts_burst_complete_by_count() -> None:
    request = b"R" * 32
    response = b"ok"
    flushes, assembler = _run(
        [_marker("=>", 32), *_dump(request), _marker("<=", 2), *_dump(response)]
    )

    assert [(flush.direction, flush.payload) for flush in flushes] == [
        (Direction.OUTBOUND, request),
        (Direction.INBOUND, response),
    ]
    assert assembler.diagnostics == []


def test_marker_preempts_unfinished_burst_with_warning() -> None:
    flushes, assembler = _run(
        [_marker("=>", 48), *_dump(b"q" * 32), _marker("<=", 2), *_dump(b"ok")]
    )

    assert [(flush.direction, len(flush.payload)) for flush in flushes] == [
        (Direction.OUTBOUND, 32),
        (Direction.INBOUND, 2),
    ]
    assert [diag.kind for diag in assembler.diagnostics] == [LENGTH_MISMATCH]
    assert assembler.diagnostics[0].line_number == 4


def test_new_block_without_marker_continues_same_direction() -> None:
    flushes, assembler = _run(
        [_marker("<=", 16), *_dump(b"x" * 16), *_dump(b"more")]
    )

    assert [(flush.direction, flush.payload, flush.declared_length) for flush in flushes] == [
        (Direction.INBOUND, b"x" * 16, 16),
        (Direction.INBOUND, b"more", None),
    ]
    assert assembler.diagnostics == []


def test_short_burst_reports_length_mismatch() -> None:
    flushes, assembler = _run([_marker("=>", 10), *_dump(b"hello")])

    assert [flush.payload for flush in flushes] == [b"hello"]
    assert [diag.kind for diag in assembler.diagnostics] == [LENGTH_MISMATCH]


def test_pending_burst_is_flushed_at_end_of_input() -> None:
    flushes, assembler = _run([_marker("<=", 48), *_dump(b"z" * 32)])

    assert [flush.payload for flush in flushes] == [b"z" * 32]
    assert [diag.kind for diag in assembler.diagnostics] == [LENGTH_MISMATCH]


def test_info_lines_are_ignored() -> None:
    flushes, assembler = _run(
        ["== Info: Trying 127.0.0.1:80...", _marker("=>", 3), "== Info: noise", *_dump(b"abc")]
    )

    assert [flush.payload for flush in flushes] == [b"abc"]
    assert assembler.diagnostics == []
    assert assembler.ignored_lines == 2
