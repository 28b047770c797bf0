"""Serialize synthesized segments into IPv4+TCP frames with dpkt."""

from __future__ import annotations

import dpkt

from trace2pcap.config import SynthesisConfig
from trace2pcap.tcp.state import Direction, Endpoint, Segment

TCP_BASE_HEADER_WORDS = 5


class FrameBuilder:
    """Build raw IPv4 frames for segments exchanged between two endpoints."""

    def __init__(self, src: Endpoint, dst: Endpoint, config: SynthesisConfig | None = None) -> None:
        self.src = src
        self.dst = dst
        self.config = config or SynthesisConfig()
        self._ip_id = 0

    def endpoints(self, direction: Direction) -> tuple[Endpoint, Endpoint]:
        if direction is Direction.OUTBOUND:
            return self.src, self.dst
        return self.dst, self.src

    def build(self, segment: Segment) -> bytes:
        sender, receiver = self.endpoints(segment.direction)
        options = segment.tcp_options or b""

        tcp = dpkt.tcp.TCP(
            sport=sender.port,
            dport=receiver.port,
            seq=segment.sequence_number,
            ack=segment.acknowledgment_number,
            flags=int(segment.flags),
            win=self.config.window,
            opts=options,
            data=segment.payload,
        )
        tcp.off = TCP_BASE_HEADER_WORDS + len(options) // 4

        self._ip_id = (self._ip_id + 1) & 0xFFFF
        ip = dpkt.ip.IP(
            src=sender.packed_ip,
            dst=receiver.packed_ip,
            p=dpkt.ip.IP_PROTO_TCP,
            ttl=self.config.ttl,
            id=self._ip_id,
            data=tcp,
        )
        ip.df = 1
        ip.len = len(ip)
        # Checksums are filled in by dpkt while packing.
        return bytes(ip)


__all__ = ["FrameBuilder"]
