"""
diskwatch.main
------------
AUTHOR: carter-vin

PURPOSE:
- Hourly disk usage check for one mount point
- Alert via SNS when usage reaches the threshold
- Fail loudly (non-zero exit) when measuring or publishing fails

Key contract:
- `diskwatch check` needs no arguments once deployed (env vars / defaults)
- exit 0: check ran (alerted or not)
- exit 2: configuration error
- exit 3: measurement failure
- exit 4: notification failure
"""

from __future__ import annotations

import platform
import shutil
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import typer

from diskwatch.check import VERSION, run_check
from diskwatch.collectors.disk import read_disk_usage
from diskwatch.collectors.identity import resolve_identity
from diskwatch.config import (
    DEFAULT_METADATA_TIMEOUT_S,
    DEFAULT_METADATA_URL,
    DEFAULT_MOUNT_PATH,
    DEFAULT_THRESHOLD_PCT,
    METADATA_TIMEOUT_ENV,
    METADATA_URL_ENV,
    MOUNT_PATH_ENV,
    REGION_ENVS,
    THRESHOLD_ENV,
    TOPIC_ARN_ENV,
    CheckConfig,
)
from diskwatch.errors import ConfigError, MeasurementError, NotificationError
from diskwatch.logging import emit_event, utc_now_iso
from diskwatch.model import build_test_message, outcome_to_json
from diskwatch.notify import SnsNotifier

EXIT_CONFIG = 2
EXIT_MEASUREMENT = 3
EXIT_NOTIFICATION = 4

CRON_SCHEDULE = "0 * * * *"

app = typer.Typer(
    add_completion=False,
    help="diskwatch: disk usage threshold alerts via SNS",
)


# -----------------------------
# DATA CLASSES
# -----------------------------
@dataclass(frozen=True)
class EnvironmentInfo:
    """
    Snapshot of the runtime environment
    """

    python_version: str
    os: str
    machine: str
    utc_now: str


def collect_environment_info() -> EnvironmentInfo:
    return EnvironmentInfo(
        python_version=sys.version.split()[0],
        os=f"{platform.system()} {platform.release()}",
        machine=platform.machine(),
        utc_now=datetime.now(timezone.utc).isoformat(),
    )


def build_notifier(config: CheckConfig) -> SnsNotifier:
    """
    One notifier (and boto3 session) per process
    """
    return SnsNotifier(config.topic_arn, config.region)


def _load_config(**values) -> CheckConfig:
    try:
        return CheckConfig(**values).validate()
    except ConfigError as e:
        emit_event(
            "config_invalid",
            version=VERSION,
            mount_path=values.get("mount_path", DEFAULT_MOUNT_PATH),
            message=str(e),
        )
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(code=EXIT_CONFIG)


# Shared options: every value has a deploy-time default or env var
TopicOption = typer.Option(
    "",
    "--topic-arn",
    envvar=TOPIC_ARN_ENV,
    help="SNS topic ARN to publish alerts to.",
)
RegionOption = typer.Option(
    None,
    "--region",
    envvar=REGION_ENVS,
    help="AWS region of the topic (default: boto3 resolution).",
)
MetadataUrlOption = typer.Option(
    DEFAULT_METADATA_URL,
    "--metadata-url",
    envvar=METADATA_URL_ENV,
    help="Instance metadata endpoint base URL.",
)
MetadataTimeoutOption = typer.Option(
    DEFAULT_METADATA_TIMEOUT_S,
    "--metadata-timeout",
    envvar=METADATA_TIMEOUT_ENV,
    help="Timeout (seconds) for each metadata request.",
)


# -----------------------------
# ROOT COMMAND BEHAVIOR
# -----------------------------
@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    """
    Print a hint when no subcommand is given
    """
    if ctx.invoked_subcommand is None:
        typer.echo("No command provided. Try: diskwatch --help")


# -----------------------------
# CLI COMMANDS
# -----------------------------
@app.command()
def version() -> None:
    """
    Print version & runtime env
    """
    env = collect_environment_info()

    typer.echo(f"diskwatch v{VERSION}")
    typer.echo(f"python={env.python_version}")
    typer.echo(f"os={env.os}")
    typer.echo(f"machine={env.machine}")
    typer.echo(f"utc_now={env.utc_now}")


@app.command("check")
def check(
    threshold: int = typer.Option(
        DEFAULT_THRESHOLD_PCT,
        "--threshold",
        envvar=THRESHOLD_ENV,
        help="Alert when usage percent is at or above this value.",
    ),
    mount_path: str = typer.Option(
        DEFAULT_MOUNT_PATH,
        "--mount-path",
        envvar=MOUNT_PATH_ENV,
        help="Mount point to measure.",
    ),
    topic_arn: str = TopicOption,
    region: Optional[str] = RegionOption,
    metadata_url: str = MetadataUrlOption,
    metadata_timeout: float = MetadataTimeoutOption,
    no_stdout: bool = typer.Option(
        False,
        "--no-stdout",
        help="Disable printing the outcome JSON to stdout.",
    ),
) -> None:
    """
    Measure disk usage once and alert if at or above threshold

    Runs to completion and exits; schedule it hourly (see cron-line).
    Every run over threshold alerts again: there is no deduplication.
    """
    config = _load_config(
        threshold=threshold,
        mount_path=mount_path,
        topic_arn=topic_arn,
        region=region,
        metadata_url=metadata_url,
        metadata_timeout_s=metadata_timeout,
    )

    emit_event("check_start", version=VERSION, **config.to_dict())

    status = "failed"
    outcome = None

    try:
        outcome = run_check(
            config,
            notifier=build_notifier(config),
            reader=read_disk_usage,
            resolver=resolve_identity,
        )
        status = "ok"
    except MeasurementError as e:
        status = "measurement_failed"
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(code=EXIT_MEASUREMENT)
    except NotificationError as e:
        status = "notification_failed"
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(code=EXIT_NOTIFICATION)
    finally:
        # Every run ends with a closing event, failed ones included
        emit_event(
            "check_complete",
            version=VERSION,
            mount_path=config.mount_path,
            status=status,
            alerted=outcome.alerted if outcome else None,
            used_pct=outcome.usage.used_pct if outcome else None,
        )

    if not no_stdout:
        typer.echo(outcome_to_json(outcome))


@app.command("test-notify")
def test_notify(
    topic_arn: str = TopicOption,
    region: Optional[str] = RegionOption,
    metadata_url: str = MetadataUrlOption,
    metadata_timeout: float = MetadataTimeoutOption,
) -> None:
    """
    Publish a marked test message to verify topic, subscription and role

    Exits non-zero if the publish fails.
    """
    config = _load_config(
        topic_arn=topic_arn,
        region=region,
        metadata_url=metadata_url,
        metadata_timeout_s=metadata_timeout,
    )

    identity = resolve_identity(config)
    if identity.source != "imds":
        emit_event(
            "identity_fallback",
            version=VERSION,
            mount_path=config.mount_path,
            identifier=identity.identifier,
            message=identity.reason or "",
        )

    message = build_test_message(identity, emitted_at=utc_now_iso())

    try:
        message_id = build_notifier(config).publish(message)
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
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(code=EXIT_NOTIFICATION)

    emit_event(
        "notification_published",
        version=VERSION,
        mount_path=config.mount_path,
        topic_arn=config.topic_arn,
        message_id=message_id,
        test=True,
    )


@app.command("cron-line")
def cron_line(
    executable: Optional[str] = typer.Option(
        None,
        "--executable",
        help="Path to the diskwatch executable (default: resolved from PATH).",
    ),
    log_path: str = typer.Option(
        "/var/log/diskwatch.log",
        "--log-path",
        help="File the scheduled run appends its output to.",
    ),
) -> None:
    """
    Print the hourly crontab entry for `diskwatch check`
    """
    exe = executable or shutil.which("diskwatch") or "diskwatch"
    typer.echo(f"{CRON_SCHEDULE} {exe} check --no-stdout >> {log_path} 2>&1")


if __name__ == "__main__":
    app()
