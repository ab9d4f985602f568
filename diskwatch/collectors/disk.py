"""
diskwatch.collectors.disk
AUTHOR: carter-vin

Disk usage reader
- Uses shutil.disk_usage for the single configured mount point
- Percentage matches `df` Use%: used / (used + available), rounded up
- Failure is loud: no reading, no silent skip
"""

from __future__ import annotations

from dataclasses import dataclass
import shutil

from diskwatch.errors import MeasurementError


@dataclass(frozen=True)
class DiskUsage:
    mount_path: str
    total_bytes: int
    used_bytes: int
    free_bytes: int
    used_pct: int

    def to_dict(self) -> dict[str, object]:
        return {
            "mount_path": self.mount_path,
            "total_bytes": self.total_bytes,
            "used_bytes": self.used_bytes,
            "free_bytes": self.free_bytes,
            "used_pct": self.used_pct,
        }


def used_percent(used: int, free: int) -> int:
    """
    df-style utilization percentage

    Reserved blocks are excluded from the denominator, same as df.
    """
    denominator = used + free
    if denominator <= 0:
        raise MeasurementError("filesystem reports zero usable size")

    # Integer ceiling, same as df; float division drifts on large filesystems
    pct = -(-used * 100 // denominator)
    if not 0 <= pct <= 100:
        raise MeasurementError(f"utilization out of range: {pct}")
    return pct


def read_disk_usage(path: str = "/") -> DiskUsage:
    """
    Read utilization of one mount point

    Raises MeasurementError if the path is missing or unreadable
    """
    try:
        usage = shutil.disk_usage(path)
    except OSError as e:
        raise MeasurementError(f"cannot read disk usage for {path!r}: {e}") from e

    return DiskUsage(
        mount_path=path,
        total_bytes=usage.total,
        used_bytes=usage.used,
        free_bytes=usage.free,
        used_pct=used_percent(usage.used, usage.free),
    )
