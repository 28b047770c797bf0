"""Tests for the click command group."""

import sys
from pathlib import Path

from click.testing import CliRunner

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from trace2pcap.cli import cli

TRACE = "\n".join(
    [
        "=> Send header, 5 bytes (0x5)",
        "0000: 68 65 6c 6c 6f" + " " * 34 + "hello",
        "<= Recv data, 2 bytes (0x2)",
        "0000: 6f 6b" + " " * 43 + "ok",
        "",
    ]
)


def _trace(tmp_path: Path) -> Path:
    path = tmp_path / "trace.txt"
    path.write_text(TRACE, encoding="utf-8")
    return path


def test_convert_writes_capture(tmp_path: Path) -> None:
    output = tmp_path / "out.pcap"
    result = CliRunner().invoke(
        cli,
        ["convert", "10.0.0.1:40000", "10.0.0.2:443", str(_trace(tmp_path)), str(output), "--start-time", "0"],
    )

    assert result.exit_code == 0, result.output
    assert "Wrote 5 segments" in result.output
    assert "10.0.0.1:40000 -> 10.0.0.2:443: 5 bytes" in result.output
    assert "Trace lines read: 4 (0 ignored)" in result.output
    assert output.stat().st_size > 0


def test_convert_requires_four_arguments(tmp_path: Path) -> None:
    result = CliRunner().invoke(cli, ["convert", "10.0.0.1:40000", "10.0.0.2:443", str(_trace(tmp_path))])

    assert result.exit_code == 2
    assert "Usage" in result.output


def test_convert_rejects_bad_endpoint(tmp_path: Path) -> None:
    output = tmp_path / "out.pcap"
    result = CliRunner().invoke(
        cli, ["convert", "10.0.0.1", "10.0.0.2:443", str(_trace(tmp_path)), str(output)]
    )

    assert result.exit_code == 2
    assert not output.exists()


def test_convert_missing_trace_is_fatal(tmp_path: Path) -> None:
    result = CliRunner().invoke(
        cli, ["convert", "10.0.0.1:1", "10.0.0.2:2", str(tmp_path / "absent.txt"), str(tmp_path / "out.pcap")]
    )

    assert result.exit_code != 0


def test_convert_unwritable_output_is_fatal(tmp_path: Path) -> None:
    output = tmp_path / "no-such-dir" / "out.pcap"
    result = CliRunner().invoke(
        cli, ["convert", "10.0.0.1:1", "10.0.0.2:2", str(_trace(tmp_path)), str(output)]
    )

    assert result.exit_code == 1
    assert "Error" in result.output


def test_inspect_lists_segments(tmp_path: Path) -> None:
    output = tmp_path / "out.pcap"
    runner = CliRunner()
    runner.invoke(
        cli, ["convert", "10.0.0.1:40000", "10.0.0.2:443", str(_trace(tmp_path)), str(output), "--start-time", "0"]
    )

    result = runner.invoke(cli, ["inspect", str(output)])

    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert lines[0].startswith("0.000000 10.0.0.1:40000 -> 10.0.0.2:443 [S] seq=5 ack=-")
    assert "[P|A] seq=6 ack=6 len=5" in lines[2]
    assert "5 segments" in result.output
    assert "10.0.0.2:443 -> 10.0.0.1:40000: 2 bytes" in result.output


def test_inspect_rejects_non_capture(tmp_path: Path) -> None:
    result = CliRunner().invoke(cli, ["inspect", str(_trace(tmp_path))])

    assert result.exit_code == 1
