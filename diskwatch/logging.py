"""
diskwatch.logging
AUTHOR: carter-vin

Structured JSON event logging for ops ingestion, plus the syslog side channel

Contract:
- One JSON object per line to stdout
- Stable event vocabulary (allowlist)
- UTC timestamps only
- Syslog gets exactly one human-readable line per alert, at LOG_CRIT
"""

from __future__ import annotations

import json
import syslog
from datetime import datetime, timezone
from typing import Any

SYSLOG_IDENT = "diskwatch"

# Event types
VALID_EVENT_TYPES = {
    "check_start",
    "config_invalid",
    "usage_measured",
    "measurement_failed",
    "threshold_exceeded",
    "identity_fallback",
    "notification_published",
    "notification_failed",
    "check_complete",
}


def _truncate_message(value: str, *, limit: int = 200) -> str:
    """
    Cap message length to keep events compact
    """
    if len(value) <= limit:
        return value
    return value[:limit] + f"...[truncated {len(value) - limit} chars]"


# Time: current in UTC ISO 8601
def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def emit_event(event_type: str, *, version: str, mount_path: str, **fields: Any) -> None:
    """
    Emit structured event line to stdout

    Rules:
    - event_type in VALID_EVENT_TYPES
    - event_type, version, mount_path, timestamp always present
      (one host can run several checks, one per mount; mount_path keys them)
    - None-valued fields are dropped
    - sort_keys + compact separators for format
    """
    if event_type not in VALID_EVENT_TYPES:
        raise ValueError(f"invalid event_type: {event_type}")

    if "message" in fields and isinstance(fields["message"], str):
        # Avoid emitting long strings in event fields
        fields["message"] = _truncate_message(fields["message"])

    payload: dict[str, Any] = {
        "event_type": event_type,
        "utc_now": utc_now_iso(),
        "version": version,
        "mount_path": mount_path,
        **{key: value for key, value in fields.items() if value is not None},
    }

    print(
        json.dumps(
            payload,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
        )
    )


def syslog_critical(line: str) -> None:
    """
    Write one line to the system log (facility user, priority crit)
    """
    syslog.openlog(SYSLOG_IDENT, syslog.LOG_PID, syslog.LOG_USER)
    try:
        syslog.syslog(syslog.LOG_CRIT, line)
    finally:
        syslog.closelog()
