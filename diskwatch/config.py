"""
diskwatch.config
AUTHOR: carter-vin

Deployment-time check configuration

All parameters are fixed at deploy time. The scheduled invocation passes
no arguments; overrides come from env vars (see main.py options).
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Any, Optional

from diskwatch.errors import ConfigError

DEFAULT_THRESHOLD_PCT = 90
DEFAULT_MOUNT_PATH = "/"

# IMDS link-local endpoint; override for tests or non-EC2 dev boxes
DEFAULT_METADATA_URL = "http://169.254.169.254"
DEFAULT_METADATA_TIMEOUT_S = 2.0
DEFAULT_TOKEN_TTL_S = 60

# Env var names read by the CLI
THRESHOLD_ENV = "DISKWATCH_THRESHOLD"
MOUNT_PATH_ENV = "DISKWATCH_MOUNT_PATH"
TOPIC_ARN_ENV = "DISKWATCH_TOPIC_ARN"
REGION_ENVS = ["DISKWATCH_REGION", "AWS_REGION"]
METADATA_URL_ENV = "DISKWATCH_METADATA_URL"
METADATA_TIMEOUT_ENV = "DISKWATCH_METADATA_TIMEOUT"


@dataclass(frozen=True)
class CheckConfig:
    """
    Everything one check needs, passed explicitly to each step

    - threshold: alert when used_pct >= threshold
    - topic_arn: pre-provisioned SNS topic
    - region: None -> boto3 resolves from its own chain
    """

    topic_arn: str
    threshold: int = DEFAULT_THRESHOLD_PCT
    mount_path: str = DEFAULT_MOUNT_PATH
    region: Optional[str] = None
    metadata_url: str = DEFAULT_METADATA_URL
    metadata_timeout_s: float = DEFAULT_METADATA_TIMEOUT_S
    token_ttl_s: int = DEFAULT_TOKEN_TTL_S

    def validate(self) -> "CheckConfig":
        """
        Raise ConfigError on invalid values, return self otherwise
        """
        if isinstance(self.threshold, bool) or not isinstance(self.threshold, int):
            raise ConfigError(f"threshold must be an integer, got {self.threshold!r}")
        if not 0 <= self.threshold <= 100:
            raise ConfigError(f"threshold must be within 0..100, got {self.threshold}")

        if not self.topic_arn or not self.topic_arn.strip():
            raise ConfigError(f"topic ARN is empty (set {TOPIC_ARN_ENV})")
        if not self.topic_arn.startswith("arn:"):
            raise ConfigError(f"topic ARN is malformed: {self.topic_arn!r}")

        if not self.mount_path or not self.mount_path.strip():
            raise ConfigError("mount path is empty")

        if not math.isfinite(self.metadata_timeout_s) or self.metadata_timeout_s <= 0:
            raise ConfigError(
                f"metadata timeout must be a finite number > 0, got {self.metadata_timeout_s!r}"
            )
        if not 1 <= self.token_ttl_s <= 21600:
            raise ConfigError("metadata token ttl must be within 1..21600 seconds")

        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "threshold": self.threshold,
            "mount_path": self.mount_path,
            "topic_arn": self.topic_arn,
            "region": self.region,
        }
