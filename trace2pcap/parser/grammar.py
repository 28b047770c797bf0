"""Line classification for verbose HTTP client hex-dump traces.

A trace interleaves three kinds of lines::

    => Send header, 78 bytes (0x4e)
    0000: 47 45 54 20 2f 20 48 54 54 50 2f 31 2e 31 0d 0a GET / HTTP/1.1..
    == Info: Connection #0 to host example.com left intact

Direction markers open a burst, hex-dump lines carry its bytes and anything
else is ignored.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

from trace2pcap.tcp.state import Direction

MAX_LINE_BYTES = 16
# "0000: " plus a 48-column hex area; the ASCII gutter follows.
HEXDUMP_PREFIX_WIDTH = 6 + 3 * MAX_LINE_BYTES

MARKER_RE = re.compile(r"^(=>|<=) (Send|Recv) .*, (\d+) bytes \(0x[0-9a-f]+\)$")
HEXDUMP_RE = re.compile(r"^([0-9a-fA-F]{4}): ((?:[0-9a-fA-F]{2} ){1,16})")

_ARROWS = {"=>": Direction.OUTBOUND, "<=": Direction.INBOUND}


@dataclass(frozen=True)
class DirectionMarker:
    direction: Direction
    declared_length: int


@dataclass(frozen=True)
class HexDumpLine:
    offset: int
    raw_bytes: bytes


@dataclass(frozen=True)
class OtherLine:
    text: str


@dataclass(frozen=True)
class MalformedHexDump:
    """A line that looks like a dump row but fails the length check."""

    offset: int
    expected_length: int
    actual_length: int


LineClass = Union[DirectionMarker, HexDumpLine, MalformedHexDump, OtherLine]


def classify_line(line: str) -> LineClass:
    """Classify one trace line (line terminator optional)."""

    text = line.rstrip("\r\n")

    marker = MARKER_RE.match(text)
    if marker:
        declared = int(marker.group(3))
        if declared > 0:
            return DirectionMarker(direction=_ARROWS[marker.group(1)], declared_length=declared)
        return OtherLine(text)

    dump = HEXDUMP_RE.match(text)
    if dump:
        offset = int(dump.group(1), 16)
        raw = bytes.fromhex(dump.group(2))
        expected = HEXDUMP_PREFIX_WIDTH + len(raw)
        if len(text) != expected:
            return MalformedHexDump(offset=offset, expected_length=expected, actual_length=len(text))
        return HexDumpLine(offset=offset, raw_bytes=raw)

    return OtherLine(text)


__all__ = [
    "DirectionMarker",
    "HexDumpLine",
    "LineClass",
    "MalformedHexDump",
    "OtherLine",
    "HEXDUMP_PREFIX_WIDTH",
    "MAX_LINE_BYTES",
    "classify_line",
]
