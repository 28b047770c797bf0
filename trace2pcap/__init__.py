"""Convert verbose HTTP client hex-dump traces into synthetic TCP/IP captures."""

__version__ = "0.1.0"
