"""Command line interface for trace2pcap."""

from __future__ import annotations

from pathlib import Path

import click

from trace2pcap.capture.reader import read_capture, reassemble_streams
from trace2pcap.config import DEFAULT_TICK_SECONDS, SynthesisConfig
from trace2pcap.driver import convert_trace
from trace2pcap.logging_utils import configure_logging, get_logger
from trace2pcap.tcp.state import Direction, Endpoint, EndpointError

LOGGER = get_logger(__name__)

DEFAULT_TICK_MS = int(DEFAULT_TICK_SECONDS * 1000)


@click.group()
@click.option(
    "--verbose",
    is_flag=True,
    default=False,
    help="Enable debug logging output.",
)
@click.option(
    "--quiet",
    is_flag=True,
    default=False,
    help="Only log warnings and errors.",
)
def cli(verbose: bool, quiet: bool) -> None:
    """Turn verbose HTTP client hex-dump traces into pcap captures."""

    configure_logging(verbose=verbose, quiet=quiet)


def _endpoint(ctx: click.Context, param: click.Parameter, value: str) -> Endpoint:
    try:
        return Endpoint.parse(value)
    except EndpointError as exc:
        raise click.BadParameter(str(exc), ctx=ctx, param=param)


@cli.command("convert")
@click.argument("src", callback=_endpoint)
@click.argument("dst", callback=_endpoint)
@click.argument("trace_path", type=click.Path(exists=True, dir_okay=False, readable=True, path_type=Path))
@click.argument("output_path", type=click.Path(dir_okay=False, writable=True, path_type=Path))
@click.option(
    "--tick-ms",
    default=DEFAULT_TICK_MS,
    type=click.IntRange(min=1),
    show_default=True,
    help="Synthetic time between consecutive segments.",
)
@click.option(
    "--start-time",
    default=None,
    type=float,
    help="Epoch seconds for the first segment (default: now).",
)
def convert_command(
    src: Endpoint,
    dst: Endpoint,
    trace_path: Path,
    output_path: Path,
    tick_ms: int,
    start_time: float | None,
) -> None:
    """Convert TRACE_PATH exchanged between SRC and DST (ip:port) into OUTPUT_PATH."""

    config = SynthesisConfig(tick_seconds=tick_ms / 1000.0, start_time=start_time)
    try:
        summary = convert_trace(src, dst, trace_path, output_path, config=config)
    except OSError as exc:
        raise click.ClickException(f"{exc.filename or output_path}: {exc.strerror or exc}")

    click.echo(f"Wrote {summary.segments} segments to {output_path}")
    click.echo(f"  {src} -> {dst}: {summary.payload_bytes[Direction.OUTBOUND]} bytes")
    click.echo(f"  {dst} -> {src}: {summary.payload_bytes[Direction.INBOUND]} bytes")
    click.echo(f"Trace lines read: {summary.lines_read} ({summary.ignored_lines} ignored)")
    if summary.diagnostics:
        click.echo(
            f"Warnings: {summary.skipped_lines} skipped lines, "
            f"{summary.length_mismatches} length mismatches"
        )


@cli.command("inspect")
@click.argument("capture_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def inspect_command(capture_path: Path) -> None:
    """List the TCP segments stored in CAPTURE_PATH."""

    try:
        packets = read_capture(capture_path)
    except ValueError as exc:
        raise click.ClickException(str(exc))
    if not packets:
        click.echo("No TCP segments found.")
        return

    for packet in packets:
        click.echo(
            f"{packet.ts:.6f} {packet.src}:{packet.sport} -> {packet.dst}:{packet.dport} "
            f"[{packet.flags or '-'}] seq={packet.seq} ack={packet.ack if packet.ack is not None else '-'} "
            f"len={packet.payload_len}"
        )

    first = packets[0]
    outbound, inbound = reassemble_streams(packets, first.src)
    click.echo(f"{len(packets)} segments")
    click.echo(f"  {first.src}:{first.sport} -> {first.dst}:{first.dport}: {len(outbound)} bytes")
    click.echo(f"  {first.dst}:{first.dport} -> {first.src}:{first.sport}: {len(inbound)} bytes")
    LOGGER.debug("Inspected %s", capture_path)


if __name__ == "__main__":
    cli()
