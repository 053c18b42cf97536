"""Per-platform choice of listing commands and their parsers."""

import functools
import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from sysdash.errors import UnsupportedPlatformError
from sysdash.models import DiskVolumeRecord, ProcessRecord
from sysdash.parsers import (
    parse_posix_disks,
    parse_posix_processes,
    parse_windows_disks,
    parse_windows_processes,
)

logger = logging.getLogger(__name__)


class PlatformFamily(Enum):
    """Host OS families with a known command set."""

    POSIX = "posix"
    WINDOWS = "windows"


@dataclass(slots=True, frozen=True)
class PlatformStrategy:
    """Commands and matching parsers for one platform family."""

    family: PlatformFamily
    process_command: str
    parse_processes: Callable[[str], list[ProcessRecord]]
    disk_command: str
    parse_disks: Callable[[str], list[DiskVolumeRecord]]


# `ps aux` prints a header on every ps flavour; its PID column is not numeric,
# so the parser drops it along with other rows lacking a positive PID.
POSIX_STRATEGY = PlatformStrategy(
    family=PlatformFamily.POSIX,
    process_command="ps aux",
    parse_processes=parse_posix_processes,
    disk_command="df -h",
    parse_disks=parse_posix_disks,
)

WINDOWS_STRATEGY = PlatformStrategy(
    family=PlatformFamily.WINDOWS,
    process_command="tasklist /FO CSV /NH",
    parse_processes=parse_windows_processes,
    disk_command="wmic logicaldisk get size,freespace,caption",
    parse_disks=parse_windows_disks,
)

_STRATEGIES = {
    PlatformFamily.POSIX: POSIX_STRATEGY,
    PlatformFamily.WINDOWS: WINDOWS_STRATEGY,
}

_OS_NAMES = {
    "posix": PlatformFamily.POSIX,
    "nt": PlatformFamily.WINDOWS,
}


def detect_platform(os_name: str | None = None) -> PlatformFamily:
    """
    Map an `os.name` value to its platform family.

    Args:
        os_name: Value to classify. Defaults to the running interpreter's os.name.

    Raises:
        UnsupportedPlatformError: No strategy exists for the given OS.
    """
    name = os.name if os_name is None else os_name
    try:
        return _OS_NAMES[name]
    except KeyError:
        raise UnsupportedPlatformError(name) from None


def strategy_for(family: PlatformFamily) -> PlatformStrategy:
    return _STRATEGIES[family]


@functools.cache
def current_strategy() -> PlatformStrategy:
    """Strategy for the running host, resolved on first use and fixed afterwards."""
    strategy = strategy_for(detect_platform())
    logger.debug("Using %s command strategy", strategy.family.value)
    return strategy
