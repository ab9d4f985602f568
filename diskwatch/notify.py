"""
diskwatch.notify

AUTHOR: carter-vin

SNS publisher for alert messages

Credentials:
- resolved by boto3's default chain (instance role on EC2)
- never passed in, never stored

Failure semantics:
- every publish failure raises NotificationError; caller exits non-zero
- success means SNS returned a MessageId, nothing less
"""

from __future__ import annotations

from typing import Optional

import boto3
import botocore.exceptions

from diskwatch.errors import NotificationError
from diskwatch.model import AlertMessage


class SnsNotifier:
    """
    Publish subject + body to one pre-created topic

    The boto3 session (and its credential provider) is created once per
    process; the client is built lazily and reused across publishes.
    """

    def __init__(
        self,
        topic_arn: str,
        region: Optional[str] = None,
        *,
        session: Optional[boto3.session.Session] = None,
        client=None,
    ) -> None:
        self.topic_arn = topic_arn
        self.region = region
        self._session = session
        self._client = client

    @property
    def client(self):
        if self._client is None:
            if self._session is None:
                self._session = boto3.session.Session(region_name=self.region)
            self._client = self._session.client("sns")
        return self._client

    def publish(self, message: AlertMessage) -> str:
        """
        Publish and return the SNS MessageId
        """
        try:
            resp = self.client.publish(
                TopicArn=self.topic_arn,
                Subject=message.subject,
                Message=message.body,
            )
        except botocore.exceptions.ClientError as e:
            error = e.response.get("Error", {})
            code = error.get("Code")
            raise NotificationError(
                f"publish to {self.topic_arn} rejected: {code}: {error.get('Message', e)}",
                error_code=code,
            ) from e
        except botocore.exceptions.BotoCoreError as e:
            # No credentials, endpoint unreachable, bad region, ...
            raise NotificationError(
                f"publish to {self.topic_arn} failed: {e}",
                error_code=type(e).__name__,
            ) from e

        message_id = resp.get("MessageId") if isinstance(resp, dict) else None
        if not message_id:
            raise NotificationError(f"publish to {self.topic_arn} returned no MessageId")
        return message_id
