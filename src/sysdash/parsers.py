"""
Parsers turning raw command output into typed records.

Each parser is a pure function of its input text. Malformed rows are mapped on
a best-effort basis: numeric fields that do not parse become 0, and only rows
without a positive PID are dropped from process listings.
"""

import logging
import math

from sysdash.errors import ParseError
from sysdash.models import (
    CPU_UNAVAILABLE,
    MAX_PROCESSES,
    DiskVolumeRecord,
    ProcessRecord,
)

logger = logging.getLogger(__name__)

# Header markers of the respective command outputs
POSIX_DISK_HEADER = "Filesystem"
WINDOWS_DISK_HEADER = "Caption"
WINDOWS_PROCESS_HEADER = "Image Name"


def _parse_number(raw: str, kind: type[int] | type[float]) -> int | float:
    """Parse a numeric field, raising ParseError for anything but a finite number."""
    try:
        value = kind(raw)
    except (TypeError, ValueError):
        raise ParseError(raw, f"not a valid {kind.__name__}") from None
    if not math.isfinite(value):
        raise ParseError(raw, "not a finite number")
    return value


def _int_or_zero(raw: str) -> int:
    try:
        return _parse_number(raw, int)
    except ParseError as e:
        logger.debug("Defaulting field to 0: %s", e)
        return 0


def _float_or_zero(raw: str) -> float:
    try:
        return _parse_number(raw, float)
    except ParseError as e:
        logger.debug("Defaulting field to 0: %s", e)
        return 0.0


def _field(parts: list[str], index: int) -> str:
    return parts[index] if index < len(parts) else ""


def _content_lines(text: str, header: str | None = None) -> list[str]:
    """Return non-blank lines, skipping any that contain the header marker."""
    return [
        line
        for line in text.splitlines()
        if line.strip() and (header is None or header not in line)
    ]


def parse_posix_processes(text: str) -> list[ProcessRecord]:
    """
    Parse `ps aux` output.

    Columns are USER PID %CPU %MEM VSZ RSS TTY STAT START TIME COMMAND. The
    result is sorted by CPU usage (highest first, ties in listing order) and
    capped at MAX_PROCESSES entries.
    """
    records: list[ProcessRecord] = []
    for line in _content_lines(text):
        parts = line.split()
        record = ProcessRecord(
            name=_field(parts, 10) or _field(parts, 0),
            pid=_int_or_zero(_field(parts, 1)),
            cpu_percent=_float_or_zero(_field(parts, 2)),
            memory=_float_or_zero(_field(parts, 3)),
            virtual_size=_int_or_zero(_field(parts, 4)),
            resident_size=_int_or_zero(_field(parts, 5)),
            tty=_field(parts, 6),
            state=_field(parts, 7),
            start_time=_field(parts, 8),
            cpu_time=_field(parts, 9),
        )
        if record.pid > 0:
            records.append(record)

    # sorted() is stable, also with reverse=True
    records = sorted(records, key=lambda r: r.cpu_percent, reverse=True)
    return records[:MAX_PROCESSES]


def parse_windows_processes(text: str) -> list[ProcessRecord]:
    """
    Parse `tasklist /FO CSV /NH` output.

    The listing keeps the order tasklist emitted; CPU usage is not reported.
    """
    records: list[ProcessRecord] = []
    for line in _content_lines(text, WINDOWS_PROCESS_HEADER):
        parts = [part.replace('"', "") for part in line.strip().split('","')]
        record = ProcessRecord(
            name=_field(parts, 0),
            pid=_int_or_zero(_field(parts, 1)),
            cpu_percent=CPU_UNAVAILABLE,
            memory=_field(parts, 4) or "0 K",
        )
        if record.pid > 0:
            records.append(record)
        if len(records) == MAX_PROCESSES:
            break
    return records


def _clamp_percent(value: float) -> int:
    return max(0, min(100, round(value)))


def _posix_use_percent(raw: str) -> int:
    return _clamp_percent(_int_or_zero(raw.replace("%", "")))


def parse_posix_disks(text: str) -> list[DiskVolumeRecord]:
    """Parse `df -h` output."""
    volumes: list[DiskVolumeRecord] = []
    for line in _content_lines(text, POSIX_DISK_HEADER):
        parts = line.split()
        volumes.append(
            DiskVolumeRecord(
                filesystem=_field(parts, 0),
                size=_field(parts, 1),
                used=_field(parts, 2),
                available=_field(parts, 3),
                use_percent=_posix_use_percent(_field(parts, 4)),
                mounted=_field(parts, 5),
            )
        )
    return volumes


def parse_windows_disks(text: str) -> list[DiskVolumeRecord]:
    """
    Parse `wmic logicaldisk get size,freespace,caption` output.

    wmic orders columns alphabetically: Caption, FreeSpace, Size. Drives have
    no mount point, so the caption doubles as both filesystem and mount.
    """
    volumes: list[DiskVolumeRecord] = []
    for line in _content_lines(text, WINDOWS_DISK_HEADER):
        parts = line.split()
        caption = _field(parts, 0)
        free_space = _int_or_zero(_field(parts, 1))
        size = _int_or_zero(_field(parts, 2))
        used = size - free_space
        volumes.append(
            DiskVolumeRecord(
                filesystem=caption,
                size=size,
                used=used,
                available=free_space,
                use_percent=_clamp_percent(used / size * 100) if size > 0 else 0,
                mounted=caption,
            )
        )
    return volumes
