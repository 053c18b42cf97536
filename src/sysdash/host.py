"""Access to host-exposed counters and facts."""

import functools
import getpass
import ipaddress
import os
import platform
import socket
import struct
import sys
import tempfile
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, Protocol

import psutil

from sysdash.models import (
    CpuTimes,
    InterfaceAddress,
    NetworkInterface,
    PlatformInfo,
    UserInfo,
)


class HostInfoProvider(Protocol):
    """Host queries used by SystemMetrics; replaced by fakes in tests."""

    def cpu_times(self) -> list[CpuTimes]: ...

    def load_average(self) -> tuple[float, float, float]: ...

    def boot_time(self) -> float: ...

    def memory(self) -> tuple[int, int]:
        """Return (total, free) bytes."""
        ...

    def cpu_model(self) -> str: ...

    def cpu_speed(self) -> float: ...

    def platform_info(self) -> PlatformInfo: ...

    def network_interfaces(self) -> list[NetworkInterface]: ...

    def user_info(self) -> UserInfo: ...


_FAMILY_NAMES = {
    socket.AF_INET: "IPv4",
    socket.AF_INET6: "IPv6",
    psutil.AF_LINK: "MAC",
}


def _to_cpu_times(raw: Any) -> CpuTimes:
    """Normalize a psutil scputimes tuple; absent fields differ per OS."""
    return CpuTimes(
        user=raw.user,
        nice=getattr(raw, "nice", 0),
        system=raw.system,
        idle=raw.idle,
        # Windows names it 'interrupt'
        irq=getattr(raw, "irq", getattr(raw, "interrupt", 0)),
    )


def _cidr(address: str, netmask: str | None) -> str | None:
    if not netmask:
        return None
    try:
        if ":" in netmask:
            # ipaddress only takes IPv6 masks as a prefix length
            netmask = str(bin(int(ipaddress.IPv6Address(netmask))).count("1"))
        return ipaddress.ip_interface(f"{address.split('%')[0]}/{netmask}").with_prefixlen
    except ValueError:
        return None


def _is_internal(address: str) -> bool:
    try:
        return ipaddress.ip_address(address.split("%")[0]).is_loopback
    except ValueError:
        return False


def build_network_interfaces(if_addrs: Mapping[str, Iterable[Any]]) -> list[NetworkInterface]:
    """
    Convert the result of psutil.net_if_addrs() into NetworkInterface records.

    Link-layer entries supply the MAC attached to every IP address of the same
    interface.
    """
    interfaces: list[NetworkInterface] = []
    for name, entries in if_addrs.items():
        entries = list(entries)
        mac = next((e.address for e in entries if e.family == psutil.AF_LINK), None)
        addresses = []
        for entry in entries:
            family = _FAMILY_NAMES.get(entry.family)
            if family is None:
                continue
            is_link = family == "MAC"
            addresses.append(
                InterfaceAddress(
                    address=entry.address,
                    netmask=entry.netmask,
                    family=family,
                    mac=mac,
                    internal=False if is_link else _is_internal(entry.address),
                    cidr=None if is_link else _cidr(entry.address, entry.netmask),
                )
            )
        interfaces.append(NetworkInterface(name=name, addresses=addresses))
    return interfaces


@functools.cache
def _cpu_model() -> str:
    """
    Name of the CPU model, read without spawning a process.

    platform.processor() shells out to `uname -p` on POSIX hosts, which would
    block the event loop of the caller.
    """
    if os.name == "nt":
        return os.environ.get("PROCESSOR_IDENTIFIER") or "Unknown"
    try:
        with open("/proc/cpuinfo", encoding="utf-8", errors="replace") as f:
            for line in f:
                key, _, value = line.partition(":")
                if key.strip() in ("model name", "Processor", "cpu model"):
                    return value.strip()
    except OSError:
        pass  # no procfs, e.g. macOS or BSD
    return platform.uname().machine or "Unknown"


class PsutilHostInfo:
    """HostInfoProvider backed by psutil and the standard platform module."""

    def cpu_times(self) -> list[CpuTimes]:
        return [_to_cpu_times(t) for t in psutil.cpu_times(percpu=True)]

    def load_average(self) -> tuple[float, float, float]:
        return tuple(psutil.getloadavg())

    def boot_time(self) -> float:
        return psutil.boot_time()

    def memory(self) -> tuple[int, int]:
        mem = psutil.virtual_memory()
        return mem.total, mem.available

    def cpu_model(self) -> str:
        return _cpu_model()

    def cpu_speed(self) -> float:
        # cpu_freq() is missing on some platforms and may return None
        freq = getattr(psutil, "cpu_freq", lambda: None)()
        return freq.current if freq else 0.0

    def platform_info(self) -> PlatformInfo:
        uname = platform.uname()
        return PlatformInfo(
            platform=sys.platform,
            arch=f"{struct.calcsize('P') * 8}bit",
            type=uname.system,
            release=uname.release,
            version=uname.version,
            machine=uname.machine,
            hostname=socket.gethostname(),
            homedir=str(Path.home()),
            tmpdir=tempfile.gettempdir(),
        )

    def network_interfaces(self) -> list[NetworkInterface]:
        return build_network_interfaces(psutil.net_if_addrs())

    def user_info(self) -> UserInfo:
        return UserInfo(
            username=getpass.getuser(),
            homedir=str(Path.home()),
            shell=os.environ.get("SHELL"),
            uid=os.getuid() if hasattr(os, "getuid") else None,
            gid=os.getgid() if hasattr(os, "getgid") else None,
        )
