"""Frame serialization and pcap I/O."""

from .frames import FrameBuilder
from .reader import PacketInfo, read_capture, reassemble_streams
from .writer import CaptureWriter

__all__ = ["CaptureWriter", "FrameBuilder", "PacketInfo", "read_capture", "reassemble_streams"]
