"""Metrics acquisition for sysdash."""

import asyncio
import logging
import threading
import time
from datetime import datetime, timezone
from queue import Queue

import psutil

from sysdash.errors import ExecutionError
from sysdash.host import HostInfoProvider, PsutilHostInfo
from sysdash.metrics import calculate_cpu_usage, calculate_memory_usage, format_uptime
from sysdash.models import (
    CpuCoreDetail,
    CpuInfo,
    CpuUsageResult,
    DashboardSnapshot,
    DetailedSystemInfo,
    DiskVolumeRecord,
    MemoryUsage,
    ProcessRecord,
    SystemStats,
    UptimeInfo,
)
from sysdash.platforms import PlatformStrategy, current_strategy
from sysdash.runner import CommandRunner
from sysdash.settings import settings

logger = logging.getLogger(__name__)

EMPTY_CPU_USAGE = CpuUsageResult(percent=0.0, core_count=0, load_averages=(0.0, 0.0, 0.0))
EMPTY_MEMORY_USAGE = MemoryUsage(total=0, free=0, used=0, percent=0.0)
UNKNOWN_UPTIME = UptimeInfo(seconds=0, formatted="Unknown", boot_time="")


class SystemMetrics:
    """
    Request/response surface over the host's metrics.

    Every call acquires fresh data and shares no state with concurrent calls.
    Command failures are logged and reported as empty listings, so callers
    always receive a well-typed value.
    """

    def __init__(
        self,
        strategy: PlatformStrategy | None = None,
        runner: CommandRunner | None = None,
        host: HostInfoProvider | None = None,
    ) -> None:
        """
        Initialize SystemMetrics.

        Args:
            strategy: Command set to use. Defaults to the one for the running host.
            runner: Command executor. Defaults to one configured from settings.
            host: Host query provider. Defaults to PsutilHostInfo.

        Raises:
            UnsupportedPlatformError: No strategy was given and the host OS is unknown.
        """
        self._strategy = strategy or current_strategy()
        self._runner = runner or CommandRunner(
            timeout=settings.command_timeout,
            strict_stderr=settings.strict_stderr,
        )
        self._host = host or PsutilHostInfo()

    @property
    def strategy(self) -> PlatformStrategy:
        return self._strategy

    async def get_processes(self) -> list[ProcessRecord]:
        """Return up to 50 processes, or an empty list if the listing command fails."""
        try:
            output = await self._runner.run(self._strategy.process_command)
        except ExecutionError as e:
            logger.error("Error getting processes: %s", e)
            return []
        return self._strategy.parse_processes(output)

    async def get_disk_usage(self) -> list[DiskVolumeRecord]:
        """Return mounted volumes, or an empty list if the listing command fails."""
        try:
            output = await self._runner.run(self._strategy.disk_command)
        except ExecutionError as e:
            logger.error("Error getting disk usage: %s", e)
            return []
        return self._strategy.parse_disks(output)

    async def get_cpu_usage(self) -> CpuUsageResult:
        return calculate_cpu_usage(self._host.cpu_times(), self._host.load_average())

    async def get_memory_usage(self) -> MemoryUsage:
        total, free = self._host.memory()
        return calculate_memory_usage(total, free)

    async def get_system_uptime(self) -> UptimeInfo:
        try:
            boot_time = self._host.boot_time()
        except (OSError, psutil.Error) as e:
            logger.error("Error getting system uptime: %s", e)
            return UNKNOWN_UPTIME
        seconds = max(0.0, time.time() - boot_time)
        return UptimeInfo(
            seconds=seconds,
            formatted=format_uptime(seconds),
            boot_time=datetime.fromtimestamp(boot_time, tz=timezone.utc).isoformat(),
        )

    async def get_system_stats(self) -> SystemStats:
        platform_info = self._host.platform_info()
        return SystemStats(
            cpu=await self.get_cpu_usage(),
            memory=await self.get_memory_usage(),
            uptime=(await self.get_system_uptime()).seconds,
            platform=platform_info.platform,
            hostname=platform_info.hostname,
        )

    async def get_detailed_system_info(self) -> DetailedSystemInfo:
        times = self._host.cpu_times()
        model = self._host.cpu_model()
        speed = self._host.cpu_speed()
        return DetailedSystemInfo(
            platform=self._host.platform_info(),
            cpu=CpuInfo(
                cores=len(times),
                model=model,
                speed=speed,
                details=[
                    CpuCoreDetail(id=i, model=model, speed=speed, times=core)
                    for i, core in enumerate(times)
                ],
            ),
            memory=await self.get_memory_usage(),
            uptime=(await self.get_system_uptime()).seconds,
            load_averages=self._host.load_average(),
            user=self._host.user_info(),
            network=self._host.network_interfaces(),
        )

    async def refresh(self) -> DashboardSnapshot:
        """
        Collect every refreshable metric concurrently.

        A failure in one request is logged and replaced by its empty value;
        it never cancels or alters the others.
        """
        results = await asyncio.gather(
            self.get_processes(),
            self.get_disk_usage(),
            self.get_cpu_usage(),
            self.get_system_uptime(),
            self.get_memory_usage(),
            return_exceptions=True,
        )
        defaults = ([], [], EMPTY_CPU_USAGE, UNKNOWN_UPTIME, EMPTY_MEMORY_USAGE)
        names = ("processes", "disks", "cpu", "uptime", "memory")
        values = []
        for name, result, default in zip(names, results, defaults):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.error("Error collecting %s: %s", name, result, exc_info=result)
                result = default
            values.append(result)
        return DashboardSnapshot(*values)


class SystemMonitor:
    """
    Background poller for SystemMetrics.

    Runs in a separate daemon thread and pushes a DashboardSnapshot to a
    thread-safe Queue every poll_rate seconds.
    """

    def __init__(
        self,
        metrics: SystemMetrics,
        update_queue: Queue[DashboardSnapshot],
        poll_rate: float = 2.0,
    ) -> None:
        """
        Initialize the SystemMonitor.

        Args:
            metrics: Source of the snapshots.
            update_queue: Thread-safe queue to push updates to.
            poll_rate: How often to poll the system (in seconds). Default 2.0s.
        """
        self._metrics = metrics
        self._queue = update_queue
        self._poll_rate = max(0.1, poll_rate)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def poll_rate(self) -> float:
        return self._poll_rate

    @poll_rate.setter
    def poll_rate(self, value: float) -> None:
        self._poll_rate = max(0.1, value)  # Minimum 0.1 seconds

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the polling thread; no-op if it is already running."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop,
            daemon=True,
            name="SystemMonitor",
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the polling thread.

        Args:
            timeout: How long to wait for thread to stop (seconds).
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            # A thread stuck in a cycle stays tracked so start() cannot spawn a twin
            if not self._thread.is_alive():
                self._thread = None

    def _poll_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                snapshot = asyncio.run(self._metrics.refresh())
                self._queue.put(snapshot)
            except Exception:
                # Keep polling; the next cycle may succeed
                logger.exception("Polling cycle failed")

            self._stop_event.wait(timeout=self._poll_rate)
