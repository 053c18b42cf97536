"""Shared fakes for sysdash tests."""

import asyncio
import time

import pytest

from sysdash.errors import ExecutionError
from sysdash.models import (
    CpuTimes,
    InterfaceAddress,
    NetworkInterface,
    PlatformInfo,
    UserInfo,
)
from sysdash.monitor import SystemMetrics
from sysdash.platforms import POSIX_STRATEGY

PS_AUX_OUTPUT = """\
USER         PID %CPU %MEM    VSZ   RSS TTY      STAT START   TIME COMMAND
root           1  0.0  0.1 167744 11788 ?        Ss   Oct17   0:03 /sbin/init splash
alice       2345 12.5  3.2 4053420 262144 ?      Sl   09:12  10:02 /usr/lib/firefox/firefox
alice       2400  3.0  1.0 900000 81920 pts/0    S+   09:15   0:10 python3 app.py
root          17  3.0  0.0      0     0 ?        S    Oct17   0:00 [kworker/1:0]
"""

DF_OUTPUT = """\
Filesystem      Size  Used Avail Use% Mounted on
/dev/sda1       100G   50G   50G  50% /
tmpfs           3.9G     0  3.9G   0% /dev/shm
/dev/sdb1       1.8T  1.2T  600G  67% /mnt/data
"""


class FakeRunner:
    """CommandRunner stand-in returning canned output per command."""

    def __init__(self, outputs: dict[str, str | Exception], delay: float = 0.0) -> None:
        self._outputs = outputs
        self._delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def run(self, command: str) -> str:
        self.calls.append(command)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self._delay:
                await asyncio.sleep(self._delay)
            value = self._outputs.get(command)
            if value is None:
                raise ExecutionError(command, "exited with status 127", returncode=127)
            if isinstance(value, Exception):
                raise value
            return value
        finally:
            self.in_flight -= 1


class FakeHost:
    """HostInfoProvider with fixed values."""

    def __init__(self, uptime: float = 3661.0) -> None:
        self.times = [
            CpuTimes(user=20, nice=0, system=5, idle=75, irq=0),
            CpuTimes(user=30, nice=0, system=5, idle=65, irq=0),
        ]
        self.load = (1.5, 1.0, 0.5)
        self.boot = time.time() - uptime
        self.total_memory = 8 * 1024**3
        self.free_memory = 2 * 1024**3

    def cpu_times(self) -> list[CpuTimes]:
        return list(self.times)

    def load_average(self) -> tuple[float, float, float]:
        return self.load

    def boot_time(self) -> float:
        return self.boot

    def memory(self) -> tuple[int, int]:
        return self.total_memory, self.free_memory

    def cpu_model(self) -> str:
        return "Test CPU"

    def cpu_speed(self) -> float:
        return 2400.0

    def platform_info(self) -> PlatformInfo:
        return PlatformInfo(
            platform="linux",
            arch="64bit",
            type="Linux",
            release="6.1.0",
            version="#1 SMP",
            machine="x86_64",
            hostname="testhost",
            homedir="/home/alice",
            tmpdir="/tmp",
        )

    def network_interfaces(self) -> list[NetworkInterface]:
        return [
            NetworkInterface(
                name="lo",
                addresses=[
                    InterfaceAddress(
                        address="127.0.0.1",
                        netmask="255.0.0.0",
                        family="IPv4",
                        mac=None,
                        internal=True,
                        cidr="127.0.0.1/8",
                    )
                ],
            )
        ]

    def user_info(self) -> UserInfo:
        return UserInfo(username="alice", homedir="/home/alice", shell="/bin/bash", uid=1000, gid=1000)


@pytest.fixture
def fake_host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner({"ps aux": PS_AUX_OUTPUT, "df -h": DF_OUTPUT})


@pytest.fixture
def metrics(fake_runner: FakeRunner, fake_host: FakeHost) -> SystemMetrics:
    return SystemMetrics(strategy=POSIX_STRATEGY, runner=fake_runner, host=fake_host)
