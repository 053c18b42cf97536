"""Tests for the sysdash command line."""

import json

import pytest
from click.testing import CliRunner
from conftest import DF_OUTPUT, PS_AUX_OUTPUT, FakeHost, FakeRunner

from sysdash import cli
from sysdash.cli import cli_main, format_bytes
from sysdash.errors import UnsupportedPlatformError
from sysdash.monitor import SystemMetrics
from sysdash.platforms import POSIX_STRATEGY


@pytest.fixture(autouse=True)
def fake_metrics(monkeypatch):
    """Route every command to fake commands and a fake host."""

    def build() -> SystemMetrics:
        runner = FakeRunner({"ps aux": PS_AUX_OUTPUT, "df -h": DF_OUTPUT})
        return SystemMetrics(strategy=POSIX_STRATEGY, runner=runner, host=FakeHost())

    monkeypatch.setattr(cli, "_build_metrics", build)
    monkeypatch.setattr(cli, "init_logging", lambda cfg: None)


def test_format_bytes_bytes():
    """Test format_bytes with byte values."""
    assert "B" in format_bytes(500)


def test_format_bytes_kilobytes():
    """Test format_bytes with kilobyte values."""
    assert "K" in format_bytes(2048)


def test_format_bytes_gigabytes():
    """Test format_bytes with gigabyte values."""
    assert "G" in format_bytes(1073741824)


def test_format_bytes_passes_text_through():
    """Test sizes already formatted by df are left alone."""
    assert format_bytes("100G") == "100G"


def test_processes_json():
    runner = CliRunner()
    result = runner.invoke(cli_main, ["processes", "--json"])

    assert result.exit_code == 0
    data = json.loads(result.output)
    assert [p["pid"] for p in data] == [2345, 2400, 17, 1]
    assert data[0]["cpu_percent"] == 12.5


def test_processes_table():
    runner = CliRunner()
    result = runner.invoke(cli_main, ["processes"])

    assert result.exit_code == 0
    assert "2345" in result.output


def test_disks_json():
    runner = CliRunner()
    result = runner.invoke(cli_main, ["disks", "--json"])

    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data[0] == {
        "filesystem": "/dev/sda1",
        "size": "100G",
        "used": "50G",
        "available": "50G",
        "use_percent": 50,
        "mounted": "/",
    }


def test_disks_table():
    runner = CliRunner()
    result = runner.invoke(cli_main, ["disks"])

    assert result.exit_code == 0
    assert "/dev/sda1" in result.output
    assert "50%" in result.output


def test_cpu():
    runner = CliRunner()
    result = runner.invoke(cli_main, ["cpu"])

    assert result.exit_code == 0
    assert "30.0%" in result.output
    assert "1.50 1.00 0.50" in result.output


def test_cpu_json():
    runner = CliRunner()
    result = runner.invoke(cli_main, ["cpu", "--json"])

    data = json.loads(result.output)
    assert data["core_count"] == 2
    assert data["load_averages"] == [1.5, 1.0, 0.5]


def test_memory_json():
    runner = CliRunner()
    result = runner.invoke(cli_main, ["memory", "--json"])

    data = json.loads(result.output)
    assert data["percent"] == 75.0


def test_uptime():
    runner = CliRunner()
    result = runner.invoke(cli_main, ["uptime"])

    assert result.exit_code == 0
    assert "Uptime: 1h 1m" in result.output


def test_info():
    runner = CliRunner()
    result = runner.invoke(cli_main, ["info"])

    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["platform"]["hostname"] == "testhost"
    assert data["cpu"]["cores"] == 2
    assert data["network"][0]["name"] == "lo"


def test_watch_stops_after_count():
    runner = CliRunner()
    result = runner.invoke(cli_main, ["watch", "--interval", "0.1", "--count", "2"])

    assert result.exit_code == 0
    assert "sample 1" in result.output
    assert "sample 2" in result.output
    assert "sample 3" not in result.output


def test_unsupported_platform(monkeypatch):
    """Test an unknown OS is reported as an error, not a crash."""

    def unsupported():
        raise UnsupportedPlatformError("java")

    monkeypatch.undo()
    monkeypatch.setattr(cli, "init_logging", lambda cfg: None)
    monkeypatch.setattr(cli, "SystemMetrics", unsupported)
    runner = CliRunner()
    result = runner.invoke(cli_main, ["processes"])

    assert result.exit_code == 1
    assert "unsupported platform" in result.output
