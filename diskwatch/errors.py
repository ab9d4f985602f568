"""
diskwatch.errors
AUTHOR: carter-vin

Domain exceptions

Exit codes are assigned at the CLI boundary, not here.
"""

from __future__ import annotations


class DiskwatchError(Exception):
    """Base for all diskwatch failures"""


class ConfigError(DiskwatchError):
    """Invalid deployment configuration (threshold, topic, path)"""


class MeasurementError(DiskwatchError):
    """
    Disk usage could not be read

    Always fatal: a check that cannot measure must not report success.
    """


class NotificationError(DiskwatchError):
    """
    Publish to the alert topic failed

    error_code carries the service error code when there is one
    (e.g. "AuthorizationError", "NotFound").
    """

    def __init__(self, message: str, *, error_code: str | None = None) -> None:
        super().__init__(message)
        self.error_code = error_code
