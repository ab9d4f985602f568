"""
diskwatch.check
AUTHOR: carter-vin

One check: measure -> decide -> (maybe) notify

Each step is stateless and re-executed in full per invocation. Steps are
injectable so tests can drive the flow without a disk, IMDS or SNS.
"""

from __future__ import annotations

from typing import Callable, Optional

from diskwatch.collectors.disk import DiskUsage, read_disk_usage
from diskwatch.collectors.identity import InstanceIdentity, resolve_identity
from diskwatch.config import CheckConfig
from diskwatch.errors import MeasurementError, NotificationError
from diskwatch.evaluate import exceeds_threshold
from diskwatch.logging import emit_event, syslog_critical, utc_now_iso
from diskwatch.model import CheckOutcome, build_alert_message
from diskwatch.notify import SnsNotifier

VERSION = "0.1.0"

UsageReader = Callable[[str], DiskUsage]
IdentityResolver = Callable[[CheckConfig], InstanceIdentity]


def run_check(
    config: CheckConfig,
    *,
    notifier: SnsNotifier,
    reader: UsageReader = read_disk_usage,
    resolver: IdentityResolver = resolve_identity,
    syslog_line: Optional[Callable[[str], None]] = None,
) -> CheckOutcome:
    """
    Run a single check against config

    Failure semantics:
    - MeasurementError: logged, re-raised (fatal)
    - identity problems: degrade to hostname inside the resolver
    - NotificationError: logged, re-raised (fatal)
    """
    if syslog_line is None:
        syslog_line = syslog_critical

    try:
        usage = reader(config.mount_path)
    except MeasurementError as e:
        emit_event(
            "measurement_failed",
            version=VERSION,
            mount_path=config.mount_path,
            error_type=type(e).__name__,
            message=str(e),
        )
        raise

    emit_event(
        "usage_measured",
        version=VERSION,
        mount_path=usage.mount_path,
        used_pct=usage.used_pct,
        threshold=config.threshold,
    )

    checked_at = utc_now_iso()

    if not exceeds_threshold(usage.used_pct, config.threshold):
        return CheckOutcome(
            usage=usage,
            threshold=config.threshold,
            alerted=False,
            checked_at=checked_at,
        )

    identity = resolver(config)
    if identity.source != "imds":
        emit_event(
            "identity_fallback",
            version=VERSION,
            mount_path=config.mount_path,
            identifier=identity.identifier,
            message=identity.reason or "",
        )

    message = build_alert_message(usage, config.threshold, identity, emitted_at=checked_at)

    syslog_line(
        f"disk usage {usage.used_pct}% on {usage.mount_path} ({identity.identifier}) "
        f"is at or above threshold {config.threshold}%, notifying {config.topic_arn}"
    )
    emit_event(
        "threshold_exceeded",
        version=VERSION,
        mount_path=usage.mount_path,
        used_pct=usage.used_pct,
        threshold=config.threshold,
        identifier=identity.identifier,
    )

    try:
        message_id = notifier.publish(message)
    except NotificationError as e:
        emit_event(
            "notification_failed",
            version=VERSION,
            mount_path=config.mount_path,
            topic_arn=config.topic_arn,
            error_type=type(e).__name__,
            error_code=e.error_code,
            message=str(e),
        )
        raise

    emit_event(
        "notification_published",
        version=VERSION,
        mount_path=config.mount_path,
        topic_arn=config.topic_arn,
        message_id=message_id,
    )

    return CheckOutcome(
        usage=usage,
        threshold=config.threshold,
        alerted=True,
        checked_at=checked_at,
        identity=identity,
        message_id=message_id,
    )
