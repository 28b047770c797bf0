"""Parsers that turn hex-dump trace text into directional payload bursts."""

from .assembler import ChunkAssembler, Diagnostic, Flush
from .grammar import classify_line

__all__ = ["ChunkAssembler", "Diagnostic", "Flush", "classify_line"]
