"""diskwatch.collectors package exports."""

from diskwatch.collectors.disk import read_disk_usage
from diskwatch.collectors.identity import resolve_identity

__all__ = [
    "read_disk_usage",
    "resolve_identity",
]
