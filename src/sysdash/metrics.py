"""Derived values computed from host-exposed counters."""

from collections.abc import Sequence

from sysdash.models import CpuTimes, CpuUsageResult, MemoryUsage


def calculate_cpu_usage(
    snapshot: Sequence[CpuTimes],
    load_averages: tuple[float, float, float],
) -> CpuUsageResult:
    """
    Compute the busy share of CPU time from one snapshot of per-core counters.

    The counters are cumulative since boot, so the result is the average load
    since boot rather than the current load. A snapshot without any ticks
    reports 0%.

    Args:
        snapshot: Counters of every logical core.
        load_averages: 1, 5 and 15 minute load averages, passed through as-is.
    """
    total_idle = sum(core.idle for core in snapshot)
    total_ticks = sum(core.total for core in snapshot)
    percent = (total_ticks - total_idle) / total_ticks * 100 if total_ticks > 0 else 0.0
    return CpuUsageResult(
        percent=percent,
        core_count=len(snapshot),
        load_averages=tuple(load_averages),
    )


def format_uptime(seconds: float) -> str:
    """Format a duration as e.g. '1d 1h 1m', '1h 1m' or '1m'. Negative input counts as 0."""
    seconds = max(0, seconds)
    days = int(seconds // 86400)
    hours = int((seconds % 86400) // 3600)
    minutes = int((seconds % 3600) // 60)

    if days > 0:
        return f"{days}d {hours}h {minutes}m"
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def calculate_memory_usage(total: int, free: int) -> MemoryUsage:
    used = total - free
    return MemoryUsage(
        total=total,
        free=free,
        used=used,
        percent=used / total * 100 if total > 0 else 0.0,
    )
