"""Read synthesized captures back into per-segment records."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, List, Optional, Tuple

import dpkt

from trace2pcap.capture.writer import LINKTYPE_IPV4
from trace2pcap.logging_utils import get_logger

LOGGER = get_logger(__name__)

LINKTYPE_RAW = 101
RAW_IP_LINKTYPES = (LINKTYPE_IPV4, LINKTYPE_RAW, dpkt.pcap.DLT_RAW)


@dataclass
class PacketInfo:
    """Minimal TCP segment representation extracted from a capture."""

    ts: float
    src: str
    dst: str
    sport: int
    dport: int
    seq: int
    ack: Optional[int]
    flags: Optional[str]
    payload: bytes
    window_size: Optional[int] = None

    @property
    def payload_len(self) -> int:
        return len(self.payload)


def read_capture(pcap_path: str | Path) -> List[PacketInfo]:
    """Decode every TCP/IPv4 record of a pcap file."""

    path = Path(pcap_path)
    if not path.exists():
        raise FileNotFoundError(f"PCAP not found: {path}")
    if path.stat().st_size == 0:
        return []

    try:
        packets = list(_iter_dpkt_packets(path))
    except dpkt.dpkt.NeedData as exc:
        raise ValueError(f"{path} is not a pcap or pcapng capture") from exc
    LOGGER.debug("Read %d TCP segments from %s", len(packets), path)
    return packets


def reassemble_streams(packets: List[PacketInfo], src: str) -> Tuple[bytes, bytes]:
    """Concatenate payloads sent by ``src`` (outbound) and by its peer (inbound)."""

    outbound = bytearray()
    inbound = bytearray()
    for packet in packets:
        target = outbound if packet.src == src else inbound
        target.extend(packet.payload)
    return bytes(outbound), bytes(inbound)


def _iter_dpkt_packets(path: Path) -> Iterator[PacketInfo]:
    with path.open("rb") as handle:
        reader: Any
        try:
            reader = dpkt.pcap.Reader(handle)
        except (dpkt.dpkt.NeedData, ValueError):
            handle.seek(0)
            reader = dpkt.pcapng.Reader(handle)

        datalink = getattr(reader, "datalink", lambda: dpkt.pcap.DLT_EN10MB)()

        for ts, buf in reader:
            try:
                packet = _decode_dpkt_frame(datalink, float(ts), buf)
            except (ValueError, AttributeError, dpkt.UnpackError):
                LOGGER.debug("Skipping undecodable record at ts=%s", ts)
                continue
            if packet is not None:
                yield packet


def _decode_dpkt_frame(datalink: int, ts: float, buf: bytes) -> Optional[PacketInfo]:
    if datalink in RAW_IP_LINKTYPES:
        ip = dpkt.ip.IP(buf)
    elif datalink == dpkt.pcap.DLT_NULL:
        ip = dpkt.ip.IP(buf[4:])
    else:
        ip = dpkt.ethernet.Ethernet(buf).data

    if not isinstance(ip, dpkt.ip.IP):
        return None

    tcp = ip.data
    if not isinstance(tcp, dpkt.tcp.TCP):
        return None

    return PacketInfo(
        ts=ts,
        src=_format_ip(ip.src),
        dst=_format_ip(ip.dst),
        sport=tcp.sport,
        dport=tcp.dport,
        seq=int(tcp.seq),
        ack=int(tcp.ack) if tcp.flags & dpkt.tcp.TH_ACK else None,
        flags=_dpkt_flag_string(tcp.flags),
        payload=bytes(tcp.data),
        window_size=tcp.win,
    )


def _dpkt_flag_string(flags: int) -> Optional[str]:
    mapping = [
        (dpkt.tcp.TH_FIN, "F"),
        (dpkt.tcp.TH_SYN, "S"),
        (dpkt.tcp.TH_RST, "R"),
        (dpkt.tcp.TH_PUSH, "P"),
        (dpkt.tcp.TH_ACK, "A"),
        (dpkt.tcp.TH_URG, "U"),
    ]

    letters = [letter for mask, letter in mapping if flags & mask]
    return "|".join(letters) if letters else None


def _format_ip(raw: bytes) -> str:
    return str(ipaddress.ip_address(raw))


__all__ = ["PacketInfo", "read_capture", "reassemble_streams"]
