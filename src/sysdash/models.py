"""Data models for sysdash."""

from dataclasses import dataclass, field

# Windows' tasklist reports no CPU usage per process.
CPU_UNAVAILABLE = "unavailable"

# Listings returned to callers never exceed this many processes.
MAX_PROCESSES = 50


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Immutable snapshot of one row of a process listing."""

    name: str
    pid: int
    cpu_percent: float | str  # float on POSIX, CPU_UNAVAILABLE on Windows
    memory: float | str  # %MEM on POSIX, "Mem Usage" text on Windows
    virtual_size: int | None = None  # KiB
    resident_size: int | None = None  # KiB
    tty: str | None = None
    state: str | None = None  # 'R', 'S', 'Ss', 'Z', etc.
    start_time: str | None = None
    cpu_time: str | None = None


@dataclass(slots=True, frozen=True)
class DiskVolumeRecord:
    """Immutable snapshot of one mounted volume."""

    filesystem: str
    size: int | str  # bytes on Windows, df -h text on POSIX
    used: int | str
    available: int | str
    use_percent: int
    mounted: str


@dataclass(slots=True, frozen=True)
class CpuTimes:
    """Cumulative time counters of one logical core since boot."""

    user: float = 0
    nice: float = 0
    system: float = 0
    idle: float = 0
    irq: float = 0

    @property
    def total(self) -> float:
        return self.user + self.nice + self.system + self.idle + self.irq


@dataclass(slots=True, frozen=True)
class CpuUsageResult:
    percent: float
    core_count: int
    load_averages: tuple[float, float, float]


@dataclass(slots=True, frozen=True)
class UptimeInfo:
    seconds: float
    formatted: str
    boot_time: str  # ISO-8601, UTC


@dataclass(slots=True, frozen=True)
class MemoryUsage:
    total: int
    free: int
    used: int
    percent: float


@dataclass(slots=True, frozen=True)
class SystemStats:
    """Combined CPU, memory and host summary."""

    cpu: CpuUsageResult
    memory: MemoryUsage
    uptime: float
    platform: str
    hostname: str


@dataclass(slots=True, frozen=True)
class PlatformInfo:
    platform: str
    arch: str
    type: str
    release: str
    version: str
    machine: str
    hostname: str
    homedir: str
    tmpdir: str


@dataclass(slots=True, frozen=True)
class CpuCoreDetail:
    id: int
    model: str
    speed: float  # MHz
    times: CpuTimes


@dataclass(slots=True, frozen=True)
class CpuInfo:
    cores: int
    model: str
    speed: float
    details: list[CpuCoreDetail] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class UserInfo:
    username: str
    homedir: str
    shell: str | None = None
    uid: int | None = None
    gid: int | None = None


@dataclass(slots=True, frozen=True)
class InterfaceAddress:
    address: str
    netmask: str | None
    family: str  # 'IPv4', 'IPv6' or 'MAC'
    mac: str | None
    internal: bool
    cidr: str | None


@dataclass(slots=True, frozen=True)
class NetworkInterface:
    name: str
    addresses: list[InterfaceAddress] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class DetailedSystemInfo:
    """Pass-through aggregation of host-exposed facts."""

    platform: PlatformInfo
    cpu: CpuInfo
    memory: MemoryUsage
    uptime: float
    load_averages: tuple[float, float, float]
    user: UserInfo
    network: list[NetworkInterface]


@dataclass(slots=True, frozen=True)
class DashboardSnapshot:
    """Results of one fan-out over every refreshable metric."""

    processes: list[ProcessRecord]
    disks: list[DiskVolumeRecord]
    cpu: CpuUsageResult
    uptime: UptimeInfo
    memory: MemoryUsage
