"""Append synthesized frames to a pcap capture file."""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Optional

import dpkt

from trace2pcap.logging_utils import get_logger

LOGGER = get_logger(__name__)

# Frames start directly at the IPv4 header.
LINKTYPE_IPV4 = 228
SNAPLEN = 65535


class CaptureWriter:
    """Context-managed wrapper around :class:`dpkt.pcap.Writer`."""

    def __init__(self, path: str | Path, linktype: int = LINKTYPE_IPV4) -> None:
        self.path = Path(path)
        self.linktype = linktype
        self.records_written = 0
        self._handle: Optional[BinaryIO] = None
        self._writer: Optional[dpkt.pcap.Writer] = None

    def open(self) -> "CaptureWriter":
        self._handle = self.path.open("wb")
        self._writer = dpkt.pcap.Writer(self._handle, snaplen=SNAPLEN, linktype=self.linktype)
        LOGGER.debug("Opened capture %s (linktype=%s)", self.path, self.linktype)
        return self

    def write(self, frame: bytes, ts: float) -> None:
        if self._writer is None or self._handle is None:
            raise RuntimeError(f"capture {self.path} is not open")
        self._writer.writepkt(frame, ts=ts)
        # Each record is on disk before the next trace line is read.
        self._handle.flush()
        self.records_written += 1

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            LOGGER.debug("Closed capture %s after %d records", self.path, self.records_written)
        self._handle = None
        self._writer = None

    def __enter__(self) -> "CaptureWriter":
        return self.open()

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["CaptureWriter", "LINKTYPE_IPV4", "SNAPLEN"]
