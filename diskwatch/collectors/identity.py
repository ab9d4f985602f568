"""
diskwatch.collectors.identity

AUTHOR: carter-vin

- instance_id: EC2 instance id via IMDSv2 (token, then meta-data lookup)
- fallback: local hostname

Design goals:
- Best-effort: never raises, never blocks the alert beyond the HTTP timeout
- Token is requested per check and never stored
"""

from __future__ import annotations

import socket
from dataclasses import dataclass
from typing import Optional

import requests

from diskwatch.config import CheckConfig

TOKEN_PATH = "/latest/api/token"
INSTANCE_ID_PATH = "/latest/meta-data/instance-id"

TOKEN_TTL_HEADER = "X-aws-ec2-metadata-token-ttl-seconds"
TOKEN_HEADER = "X-aws-ec2-metadata-token"


@dataclass(frozen=True)
class InstanceIdentity:
    """
    Identifier included in alert text

    source: "imds" or "hostname"
    reason: why the fallback happened (None when source == "imds")
    """

    identifier: str
    source: str
    reason: Optional[str] = None

    def to_dict(self) -> dict[str, Optional[str]]:
        return {"identifier": self.identifier, "source": self.source}


def _hostname_identity(reason: str) -> InstanceIdentity:
    return InstanceIdentity(identifier=socket.gethostname(), source="hostname", reason=reason)


def fetch_token(session, config: CheckConfig) -> str:
    """
    Request a short-lived IMDSv2 session token

    Returns "" on any HTTP or transport failure
    """
    try:
        resp = session.put(
            config.metadata_url.rstrip("/") + TOKEN_PATH,
            headers={TOKEN_TTL_HEADER: str(config.token_ttl_s)},
            timeout=config.metadata_timeout_s,
        )
        resp.raise_for_status()
    except requests.RequestException:
        return ""
    return resp.text.strip()


def fetch_instance_id(session, config: CheckConfig, token: str) -> str:
    try:
        resp = session.get(
            config.metadata_url.rstrip("/") + INSTANCE_ID_PATH,
            headers={TOKEN_HEADER: token},
            timeout=config.metadata_timeout_s,
        )
        resp.raise_for_status()
    except requests.RequestException:
        return ""
    return resp.text.strip()


def resolve_identity(config: CheckConfig, session=None) -> InstanceIdentity:
    """
    Resolve the self-identifier for the alert

    Precedence:
    1) IMDSv2 instance-id (needs a non-empty token)
    2) hostname
    """
    owns_session = session is None
    if owns_session:
        session = requests.Session()

    try:
        token = fetch_token(session, config)
        if not token:
            return _hostname_identity("metadata token unavailable")

        instance_id = fetch_instance_id(session, config, token)
        if not instance_id:
            return _hostname_identity("instance-id lookup failed")

        return InstanceIdentity(identifier=instance_id, source="imds")
    finally:
        if owns_session:
            session.close()
