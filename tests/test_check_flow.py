"""
Contract tests for one check: measure -> decide -> notify

Every invocation at or above threshold notifies; there is no deduplication.
"""

import json

import pytest

from diskwatch.check import run_check
from diskwatch.collectors.disk import DiskUsage
from diskwatch.collectors.identity import InstanceIdentity
from diskwatch.config import CheckConfig
from diskwatch.errors import MeasurementError, NotificationError

CONFIG = CheckConfig(topic_arn="arn:aws:sns:us-east-1:123456789012:disk-alerts", threshold=90)


def _usage(pct: int) -> DiskUsage:
    return DiskUsage(
        mount_path="/",
        total_bytes=100,
        used_bytes=pct,
        free_bytes=100 - pct,
        used_pct=pct,
    )


class RecordingNotifier:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.sent = []

    def publish(self, message) -> str:
        if self.error is not None:
            raise self.error
        self.sent.append(message)
        return f"msg-{len(self.sent)}"


class Harness:
    def __init__(self, pct: int, identity: InstanceIdentity | None = None) -> None:
        self.pct = pct
        self.identity = identity or InstanceIdentity(identifier="i-0abc", source="imds")
        self.notifier = RecordingNotifier()
        self.syslog_lines = []
        self.resolver_calls = 0

    def reader(self, path: str) -> DiskUsage:
        return _usage(self.pct)

    def resolver(self, config: CheckConfig) -> InstanceIdentity:
        self.resolver_calls += 1
        return self.identity

    def run(self):
        return run_check(
            CONFIG,
            notifier=self.notifier,
            reader=self.reader,
            resolver=self.resolver,
            syslog_line=self.syslog_lines.append,
        )


def _events(out: str) -> list[str]:
    return [json.loads(line)["event_type"] for line in out.splitlines() if line.strip()]


def test_over_threshold_sends_one_notification(capsys) -> None:
    """
    reading 92 / threshold 90 -> one message, "92%" in subject, identifier in body
    """
    harness = Harness(92)

    outcome = harness.run()

    assert outcome.alerted is True
    assert outcome.message_id == "msg-1"
    assert len(harness.notifier.sent) == 1

    message = harness.notifier.sent[0]
    assert "92%" in message.subject
    assert "i-0abc" in message.body

    assert len(harness.syslog_lines) == 1
    assert "92%" in harness.syslog_lines[0]

    assert _events(capsys.readouterr().out) == [
        "usage_measured",
        "threshold_exceeded",
        "notification_published",
    ]


def test_below_threshold_sends_nothing(capsys) -> None:
    """
    reading 50 / threshold 90 -> no message, no critical log line, no identity lookup
    """
    harness = Harness(50)

    outcome = harness.run()

    assert outcome.alerted is False
    assert outcome.identity is None
    assert harness.notifier.sent == []
    assert harness.syslog_lines == []
    assert harness.resolver_calls == 0
    assert _events(capsys.readouterr().out) == ["usage_measured"]


def test_reading_equal_to_threshold_alerts() -> None:
    harness = Harness(90)

    assert harness.run().alerted is True
    assert len(harness.notifier.sent) == 1


def test_repeated_runs_are_not_deduplicated() -> None:
    """
    Two runs in a row over threshold send two independent notifications
    """
    harness = Harness(95)

    first = harness.run()
    second = harness.run()

    assert len(harness.notifier.sent) == 2
    assert first.message_id == "msg-1"
    assert second.message_id == "msg-2"
    assert harness.resolver_calls == 2


def test_hostname_fallback_is_logged_and_used(capsys) -> None:
    harness = Harness(
        92,
        identity=InstanceIdentity(
            identifier="web-01",
            source="hostname",
            reason="metadata token unavailable",
        ),
    )

    harness.run()

    assert "web-01" in harness.notifier.sent[0].body
    assert "identity_fallback" in _events(capsys.readouterr().out)


def test_publish_failure_propagates(capsys) -> None:
    """
    Authorization denial is an error, not a silent success
    """
    harness = Harness(92)
    harness.notifier = RecordingNotifier(
        NotificationError("not authorized", error_code="AuthorizationError")
    )

    with pytest.raises(NotificationError):
        harness.run()

    events = _events(capsys.readouterr().out)
    assert events[-1] == "notification_failed"
    assert "notification_published" not in events


def test_measurement_failure_propagates(capsys) -> None:
    def broken_reader(path: str) -> DiskUsage:
        raise MeasurementError("cannot read disk usage for '/nope'")

    notifier = RecordingNotifier()

    with pytest.raises(MeasurementError):
        run_check(CONFIG, notifier=notifier, reader=broken_reader, syslog_line=lambda line: None)

    assert notifier.sent == []
    assert _events(capsys.readouterr().out) == ["measurement_failed"]
