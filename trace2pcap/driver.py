"""Drive a full trace-to-capture conversion."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List

from trace2pcap.capture.frames import FrameBuilder
from trace2pcap.capture.writer import CaptureWriter
from trace2pcap.config import SynthesisConfig
from trace2pcap.logging_utils import get_logger
from trace2pcap.parser.assembler import LENGTH_MISMATCH, ChunkAssembler, Diagnostic
from trace2pcap.tcp.state import Direction, Endpoint, Segment, TcpConnection

LOGGER = get_logger(__name__)


@dataclass
class ConversionSummary:
    segments: int = 0
    lines_read: int = 0
    ignored_lines: int = 0
    payload_bytes: Dict[Direction, int] = field(
        default_factory=lambda: {direction: 0 for direction in Direction}
    )
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def length_mismatches(self) -> int:
        return sum(1 for diag in self.diagnostics if diag.kind == LENGTH_MISMATCH)

    @property
    def skipped_lines(self) -> int:
        return len(self.diagnostics) - self.length_mismatches


class SyntheticClock:
    """Monotonic synthetic timestamps advancing by a fixed tick."""

    def __init__(self, start: float, tick: float) -> None:
        self.start = start
        self.tick = tick
        self.index = 0

    def next(self) -> float:
        ts = self.start + self.index * self.tick
        self.index += 1
        return ts


class TraceConverter:
    """Emit one capture record per synthesized segment.

    The conversation always opens with an outbound SYN and an inbound
    SYN-ACK, carries one segment per reassembled burst and ends with a bare
    ACK from the side that did not send last.
    """

    def __init__(
        self,
        src: Endpoint,
        dst: Endpoint,
        writer: CaptureWriter,
        config: SynthesisConfig | None = None,
    ) -> None:
        self.config = config or SynthesisConfig()
        self.writer = writer
        self.connection = TcpConnection(self.config)
        self.frames = FrameBuilder(src, dst, self.config)
        start = self.config.start_time if self.config.start_time is not None else time.time()
        self.clock = SyntheticClock(start, self.config.tick_seconds)
        self.summary = ConversionSummary()
        self.last_direction = Direction.OUTBOUND

    def emit(self, direction: Direction, payload: bytes = b"") -> Segment:
        segment = self.connection.segment_for(direction, payload)
        self.writer.write(self.frames.build(segment), ts=self.clock.next())
        self.last_direction = direction
        self.summary.segments += 1
        self.summary.payload_bytes[direction] += len(payload)
        return segment

    def run(self, lines: Iterable[str]) -> ConversionSummary:
        self.emit(Direction.OUTBOUND)
        self.emit(Direction.INBOUND)

        assembler = ChunkAssembler()
        for flush in assembler.feed(lines):
            self.emit(flush.direction, flush.payload)

        self.emit(self.last_direction.opposite)

        self.summary.lines_read = assembler.line_number
        self.summary.ignored_lines = assembler.ignored_lines
        self.summary.diagnostics = list(assembler.diagnostics)
        return self.summary


def convert_trace(
    src: Endpoint,
    dst: Endpoint,
    trace_path: str | Path,
    output_path: str | Path,
    config: SynthesisConfig | None = None,
) -> ConversionSummary:
    """Convert the trace at ``trace_path`` into a pcap at ``output_path``."""

    trace = Path(trace_path)
    LOGGER.info("Converting %s (%s -> %s) into %s", trace, src, dst, output_path)
    with trace.open("r", encoding="utf-8", errors="replace") as handle, CaptureWriter(output_path) as writer:
        summary = TraceConverter(src, dst, writer, config).run(handle)

    LOGGER.info(
        "Wrote %d segments (%d outbound bytes, %d inbound bytes, %d skipped lines, %d length warnings)",
        summary.segments,
        summary.payload_bytes[Direction.OUTBOUND],
        summary.payload_bytes[Direction.INBOUND],
        summary.skipped_lines,
        summary.length_mismatches,
    )
    return summary


__all__ = ["ConversionSummary", "SyntheticClock", "TraceConverter", "convert_trace"]
