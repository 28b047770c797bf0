"""Synthetic TCP connection bookkeeping."""

from .state import Direction, Endpoint, EndpointError, Segment, TcpConnection, TcpFlag

__all__ = ["Direction", "Endpoint", "EndpointError", "Segment", "TcpConnection", "TcpFlag"]
