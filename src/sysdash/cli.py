"""sysdash - command-line access to host metrics."""

from __future__ import annotations

import asyncio
import dataclasses
import json
from queue import Empty, Queue
from typing import Any

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from sysdash.errors import UnsupportedPlatformError
from sysdash.logutil import init_logging
from sysdash.models import (
    CpuUsageResult,
    DashboardSnapshot,
    DiskVolumeRecord,
    MemoryUsage,
    ProcessRecord,
    UptimeInfo,
)
from sysdash.monitor import SystemMetrics, SystemMonitor
from sysdash.settings import settings

console = Console()


def format_bytes(size: int | str) -> str:
    """Format bytes as human-readable string; text is passed through."""
    if isinstance(size, str):
        return size
    for unit in ["B", "K", "M", "G", "T"]:
        if size < 1024:
            return f"{size:5.1f}{unit}" if unit != "B" else f"{size:5d}{unit}"
        size = size / 1024
    return f"{size:.1f}P"


def _build_metrics() -> SystemMetrics:
    try:
        return SystemMetrics()
    except UnsupportedPlatformError as e:
        raise click.ClickException(str(e)) from e


def _echo_json(value: Any) -> None:
    if isinstance(value, list):
        data = [dataclasses.asdict(item) for item in value]
    else:
        data = dataclasses.asdict(value)
    click.echo(json.dumps(data, indent=2))


def _process_table(processes: list[ProcessRecord]) -> Table:
    table = Table(title="Processes")
    table.add_column("PID", justify="right")
    table.add_column("S")
    table.add_column("CPU%", justify="right")
    table.add_column("MEM", justify="right")
    table.add_column("RES", justify="right")
    table.add_column("TIME")
    table.add_column("Command")
    for proc in processes:
        cpu = proc.cpu_percent if isinstance(proc.cpu_percent, str) else f"{proc.cpu_percent:5.1f}"
        mem = proc.memory if isinstance(proc.memory, str) else f"{proc.memory:5.1f}"
        res = format_bytes(proc.resident_size * 1024) if proc.resident_size else ""
        table.add_row(str(proc.pid), proc.state or "", cpu, mem, res, proc.cpu_time or "", escape(proc.name[:50]))
    return table


def _disk_table(disks: list[DiskVolumeRecord]) -> Table:
    table = Table(title="Disks")
    table.add_column("Filesystem")
    table.add_column("Size", justify="right")
    table.add_column("Used", justify="right")
    table.add_column("Avail", justify="right")
    table.add_column("Use%", justify="right")
    table.add_column("Mounted on")
    for disk in disks:
        table.add_row(
            escape(disk.filesystem),
            format_bytes(disk.size),
            format_bytes(disk.used),
            format_bytes(disk.available),
            f"{disk.use_percent}%",
            escape(disk.mounted),
        )
    return table


def _cpu_line(cpu: CpuUsageResult) -> str:
    load = " ".join(f"{value:.2f}" for value in cpu.load_averages)
    return f"CPU: {cpu.percent:5.1f}% of {cpu.core_count} cores, load average: {load}"


def _memory_line(memory: MemoryUsage) -> str:
    return (
        f"Mem: {format_bytes(memory.used).strip()}/{format_bytes(memory.total).strip()} "
        f"({memory.percent:.1f}%)"
    )


def _uptime_line(uptime: UptimeInfo) -> str:
    return f"Uptime: {uptime.formatted}" + (f" (since {uptime.boot_time})" if uptime.boot_time else "")


def _render_snapshot(snapshot: DashboardSnapshot) -> None:
    console.print(_cpu_line(snapshot.cpu))
    console.print(_memory_line(snapshot.memory))
    console.print(_uptime_line(snapshot.uptime))
    console.print(_disk_table(snapshot.disks))
    console.print(_process_table(snapshot.processes[:10]))


@click.group()
def cli_main() -> None:
    """Sample host metrics."""
    init_logging(settings)


@cli_main.command("processes")
@click.option("--json", "as_json", is_flag=True, help="Print records as JSON.")
def processes_cmd(as_json: bool) -> None:
    """List up to 50 running processes."""
    records = asyncio.run(_build_metrics().get_processes())
    if as_json:
        _echo_json(records)
    else:
        console.print(_process_table(records))


@cli_main.command("disks")
@click.option("--json", "as_json", is_flag=True, help="Print records as JSON.")
def disks_cmd(as_json: bool) -> None:
    """Show usage of mounted volumes."""
    records = asyncio.run(_build_metrics().get_disk_usage())
    if as_json:
        _echo_json(records)
    else:
        console.print(_disk_table(records))


@cli_main.command("cpu")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
def cpu_cmd(as_json: bool) -> None:
    """Show CPU usage since boot and load averages."""
    result = asyncio.run(_build_metrics().get_cpu_usage())
    if as_json:
        _echo_json(result)
    else:
        console.print(_cpu_line(result))


@cli_main.command("memory")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
def memory_cmd(as_json: bool) -> None:
    """Show memory usage."""
    result = asyncio.run(_build_metrics().get_memory_usage())
    if as_json:
        _echo_json(result)
    else:
        console.print(_memory_line(result))


@cli_main.command("uptime")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
def uptime_cmd(as_json: bool) -> None:
    """Show time since boot."""
    result = asyncio.run(_build_metrics().get_system_uptime())
    if as_json:
        _echo_json(result)
    else:
        console.print(_uptime_line(result))


@cli_main.command("info")
def info_cmd() -> None:
    """Print platform, CPU, memory, user and network facts as JSON."""
    _echo_json(asyncio.run(_build_metrics().get_detailed_system_info()))


@cli_main.command("watch")
@click.option("--interval", type=float, default=None, help="Seconds between samples.")
@click.option("--count", type=int, default=0, show_default=True, help="Stop after N samples (0 = forever).")
def watch_cmd(interval: float | None, count: int) -> None:
    """Sample every metric repeatedly until interrupted."""
    interval = interval if interval is not None else settings.poll_interval
    update_queue: Queue[DashboardSnapshot] = Queue()
    monitor = SystemMonitor(_build_metrics(), update_queue, poll_rate=interval)
    monitor.start()
    shown = 0
    try:
        while count == 0 or shown < count:
            try:
                snapshot = update_queue.get(timeout=max(interval, 1.0) * 5)
            except Empty:
                continue
            console.rule(f"sample {shown + 1}")
            _render_snapshot(snapshot)
            shown += 1
    except KeyboardInterrupt:
        pass
    finally:
        monitor.stop()


def main() -> None:
    cli_main()


if __name__ == "__main__":
    main()
