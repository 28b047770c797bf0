"""Reassemble directional payload bursts from classified trace lines."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional

from trace2pcap.logging_utils import get_logger
from trace2pcap.parser.grammar import (
    MAX_LINE_BYTES,
    DirectionMarker,
    HexDumpLine,
    LineClass,
    MalformedHexDump,
    classify_line,
)
from trace2pcap.tcp.state import Direction

LOGGER = get_logger(__name__)

SKIPPED_OFFSET = "unexpected_offset"
SKIPPED_MALFORMED = "malformed_line"
LENGTH_MISMATCH = "length_mismatch"


@dataclass(frozen=True)
class Diagnostic:
    """A recoverable problem found while reading the trace."""

    kind: str
    line_number: int
    message: str


@dataclass(frozen=True)
class Flush:
    direction: Direction
    payload: bytes
    declared_length: Optional[int]


@dataclass
class Burst:
    direction: Direction
    data: bytearray = field(default_factory=bytearray)
    declared_length: Optional[int] = None
    next_expected_offset: int = 0


class ChunkAssembler:
    """Turn a stream of classified lines into ordered payload flushes.

    Bursts start at a direction marker and end at the first short dump line,
    at the next direction marker or at an offset-0 line following a burst
    that already reached its declared length. Lines that do not continue
    the current dump block are skipped and reported.
    """

    def __init__(self, direction: Direction = Direction.OUTBOUND) -> None:
        self.burst = Burst(direction=direction)
        self.diagnostics: List[Diagnostic] = []
        self.line_number = 0
        self.ignored_lines = 0

    def observe(self, line: LineClass) -> List[Flush]:
        self.line_number += 1
        burst = self.burst

        if isinstance(line, DirectionMarker):
            preempted = [self._flush()] if burst.data else []
            self.burst = Burst(direction=line.direction, declared_length=line.declared_length)
            return preempted

        if isinstance(line, MalformedHexDump):
            self._report(
                SKIPPED_MALFORMED,
                "skipping dump line at offset %04x: length %d, expected %d"
                % (line.offset, line.actual_length, line.expected_length),
            )
            return []

        if not isinstance(line, HexDumpLine):
            self.ignored_lines += 1
            LOGGER.debug("line %d ignored", self.line_number)
            return []

        if line.offset != burst.next_expected_offset:
            self._report(
                SKIPPED_OFFSET,
                "skipping dump line at offset %04x, expected %04x"
                % (line.offset, burst.next_expected_offset),
            )
            return []

        flushes: List[Flush] = []
        if line.offset == 0 and burst.data:
            # New dump block without a marker: same direction, unknown length.
            flushes.append(self._flush())
            burst = self.burst = Burst(direction=burst.direction)

        burst.data.extend(line.raw_bytes)
        burst.next_expected_offset += len(line.raw_bytes)

        if len(line.raw_bytes) < MAX_LINE_BYTES:
            flushes.append(self._flush())
        elif burst.declared_length is not None and len(burst.data) >= burst.declared_length:
            # Complete by count; held until a marker or a new block arrives.
            burst.next_expected_offset = 0
        return flushes

    def finish(self) -> List[Flush]:
        """Flush whatever is still pending at end of input."""

        return [self._flush()] if self.burst.data else []

    def feed(self, lines: Iterable[str]) -> Iterator[Flush]:
        """Classify and assemble raw trace lines, then flush at end of input."""

        for text in lines:
            yield from self.observe(classify_line(text))
        yield from self.finish()

    def _flush(self) -> Flush:
        burst = self.burst
        payload = bytes(burst.data)
        if burst.declared_length is not None and len(payload) != burst.declared_length:
            self._report(
                LENGTH_MISMATCH,
                "%s burst assembled %d bytes but %d were declared"
                % (burst.direction.value, len(payload), burst.declared_length),
            )
        self.burst = Burst(direction=burst.direction)
        return Flush(direction=burst.direction, payload=payload, declared_length=burst.declared_length)

    def _report(self, kind: str, message: str) -> None:
        diagnostic = Diagnostic(kind=kind, line_number=self.line_number, message=message)
        self.diagnostics.append(diagnostic)
        LOGGER.warning("line %d: %s", self.line_number, message)


__all__ = [
    "Burst",
    "ChunkAssembler",
    "Diagnostic",
    "Flush",
    "LENGTH_MISMATCH",
    "SKIPPED_MALFORMED",
    "SKIPPED_OFFSET",
]
