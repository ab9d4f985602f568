"""
diskwatch.model
AUTHOR: carter-vin

Alert message + check outcome, with deterministic serialization

Design goals:
- Explicit structure (no accidental serialization via __dict__)
- Subject fits the SNS limit (100 chars)
- Outcome JSON is stable for log shippers
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import json

from diskwatch.collectors.disk import DiskUsage
from diskwatch.collectors.identity import InstanceIdentity

SCHEMA_VERSION = "1"

# SNS rejects longer subjects
MAX_SUBJECT_CHARS = 100


@dataclass(frozen=True)
class AlertMessage:
    subject: str
    body: str


def _clip_subject(subject: str) -> str:
    """
    Make a subject SNS accepts: printable ASCII, one line, at most 100 chars

    Non-ASCII characters become "?"; the body keeps the original text.
    """
    subject = subject.encode("ascii", "replace").decode("ascii")
    subject = "".join(ch if ch.isprintable() else " " for ch in subject)
    subject = " ".join(subject.split())
    if len(subject) <= MAX_SUBJECT_CHARS:
        return subject
    return subject[: MAX_SUBJECT_CHARS - 3] + "..."


def build_alert_message(
    usage: DiskUsage,
    threshold: int,
    identity: InstanceIdentity,
    *,
    emitted_at: str,
) -> AlertMessage:
    """
    Format the over-threshold notification

    Subject carries the reading; body carries the identifier and details.
    """
    subject = _clip_subject(
        f"Disk usage alert: {usage.used_pct}% used on {usage.mount_path} ({identity.identifier})"
    )
    body = "\n".join(
        [
            f"Disk usage on {identity.identifier} is {usage.used_pct}%, "
            f"at or above the {threshold}% threshold.",
            "",
            f"instance: {identity.identifier} (source: {identity.source})",
            f"mount_path: {usage.mount_path}",
            f"used_pct: {usage.used_pct}",
            f"threshold_pct: {threshold}",
            f"used_bytes: {usage.used_bytes}",
            f"free_bytes: {usage.free_bytes}",
            f"total_bytes: {usage.total_bytes}",
            f"checked_at: {emitted_at}",
        ]
    )
    return AlertMessage(subject=subject, body=body)


def build_test_message(identity: InstanceIdentity, *, emitted_at: str) -> AlertMessage:
    """
    Message for `diskwatch test-notify`, marked so nobody mistakes it for a real alert
    """
    return AlertMessage(
        subject=_clip_subject(f"[TEST] diskwatch notification from {identity.identifier}"),
        body="\n".join(
            [
                "This is a test notification. No action required.",
                "",
                f"instance: {identity.identifier} (source: {identity.source})",
                f"sent_at: {emitted_at}",
            ]
        ),
    )


@dataclass(frozen=True)
class CheckOutcome:
    """
    Result of one check invocation

    identity / message_id are None when no alert was sent
    """

    usage: DiskUsage
    threshold: int
    alerted: bool
    checked_at: str
    identity: Optional[InstanceIdentity] = None
    message_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "usage": self.usage.to_dict(),
            "threshold": self.threshold,
            "alerted": self.alerted,
            "checked_at": self.checked_at,
            "identity": self.identity.to_dict() if self.identity else None,
            "message_id": self.message_id,
            "schema_version": SCHEMA_VERSION,
        }


def outcome_to_json(outcome: CheckOutcome) -> str:
    """
    Serialize a CheckOutcome as a single compact JSON object string
    """
    return json.dumps(
        outcome.to_dict(),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
