"""Per-direction TCP sequence bookkeeping for the synthetic conversation."""

from __future__ import annotations

import enum
import ipaddress
from dataclasses import dataclass
from typing import Dict, Optional

from trace2pcap.config import SynthesisConfig
from trace2pcap.logging_utils import get_logger

LOGGER = get_logger(__name__)

SEQ_MODULUS = 1 << 32

TCP_OPT_NOP = 1
TCP_OPT_WSCALE = 3


class EndpointError(ValueError):
    """Raised when an ``ip:port`` endpoint cannot be parsed."""


class Direction(enum.Enum):
    OUTBOUND = "outbound"
    INBOUND = "inbound"

    @property
    def opposite(self) -> "Direction":
        return Direction.INBOUND if self is Direction.OUTBOUND else Direction.OUTBOUND


class TcpFlag(enum.IntFlag):
    """TCP header flag bits used by synthesized segments."""

    SYN = 0x02
    PSH = 0x08
    ACK = 0x10


@dataclass(frozen=True)
class Endpoint:
    ip: str
    port: int

    @classmethod
    def parse(cls, text: str) -> "Endpoint":
        """Parse ``a.b.c.d:port``."""

        host, sep, port_text = text.rpartition(":")
        if not sep or not host:
            raise EndpointError(f"expected ip:port, got {text!r}")
        try:
            address = ipaddress.IPv4Address(host)
        except ValueError as exc:
            raise EndpointError(f"invalid IPv4 address {host!r}") from exc
        try:
            port = int(port_text)
        except ValueError as exc:
            raise EndpointError(f"invalid port {port_text!r}") from exc
        if not 0 < port < 65536:
            raise EndpointError(f"port out of range: {port}")
        return cls(ip=str(address), port=port)

    @property
    def packed_ip(self) -> bytes:
        return ipaddress.IPv4Address(self.ip).packed

    def __str__(self) -> str:
        return f"{self.ip}:{self.port}"


@dataclass
class ConnectionState:
    next_seq: int
    last_ack_sent: int = 0


@dataclass(frozen=True)
class Segment:
    """One packet to emit; consumed immediately by the frame builder."""

    direction: Direction
    sequence_number: int
    acknowledgment_number: int
    flags: TcpFlag
    payload: bytes = b""
    tcp_options: Optional[bytes] = None


def window_scale_option(shift: int) -> bytes:
    """NOP-padded window scale option, 4 bytes long."""

    return bytes((TCP_OPT_NOP, TCP_OPT_WSCALE, 3, shift))


class TcpConnection:
    """Derive sequence/ack numbers and flags for each direction's segments.

    Both directions start at ``config.initial_seq``. The first segment in a
    direction is its handshake segment: it carries SYN and the window scale
    option and consumes one sequence number. Every other segment advances
    the sender's sequence by its payload length and acknowledges everything
    the peer has sent so far.
    """

    def __init__(self, config: SynthesisConfig | None = None) -> None:
        self.config = config or SynthesisConfig()
        self.states: Dict[Direction, ConnectionState] = {
            direction: ConnectionState(next_seq=self.config.initial_seq) for direction in Direction
        }

    def segment_for(self, direction: Direction, payload: bytes = b"") -> Segment:
        own = self.states[direction]
        peer = self.states[direction.opposite]

        is_handshake = own.next_seq == self.config.initial_seq
        sequence_number = own.next_seq
        acknowledgment_number = peer.next_seq
        if is_handshake and direction is Direction.OUTBOUND:
            # Nothing has been received from the peer yet.
            acknowledgment_number = 0

        flags = TcpFlag(0)
        if is_handshake:
            flags |= TcpFlag.SYN
        if acknowledgment_number != 0:
            flags |= TcpFlag.ACK
        if payload:
            flags |= TcpFlag.PSH

        options = window_scale_option(self.config.window_scale) if is_handshake else None

        advance = 1 if is_handshake else len(payload)
        own.next_seq = (own.next_seq + advance) % SEQ_MODULUS
        if acknowledgment_number:
            own.last_ack_sent = acknowledgment_number

        LOGGER.debug(
            "%s segment seq=%s ack=%s flags=%s len=%s",
            direction.value,
            sequence_number,
            acknowledgment_number,
            flags,
            len(payload),
        )
        return Segment(
            direction=direction,
            sequence_number=sequence_number,
            acknowledgment_number=acknowledgment_number,
            flags=flags,
            payload=bytes(payload),
            tcp_options=options,
        )


__all__ = [
    "ConnectionState",
    "Direction",
    "Endpoint",
    "EndpointError",
    "Segment",
    "TcpConnection",
    "TcpFlag",
    "window_scale_option",
]
