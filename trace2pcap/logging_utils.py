"""Logging helpers for trace2pcap.

Diagnostics about the trace (skipped lines, length mismatches) go through
these loggers to stderr so stdout stays free for command output.
"""

from __future__ import annotations

import logging
import sys

DEFAULT_LOG_LEVEL = logging.INFO
ROOT_LOGGER_NAME = "trace2pcap"


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure root logging for CLI entrypoints."""

    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = DEFAULT_LOG_LEVEL
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-level logger."""

    return logging.getLogger(name if name else ROOT_LOGGER_NAME)


__all__ = ["configure_logging", "get_logger"]
