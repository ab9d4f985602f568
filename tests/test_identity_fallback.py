"""
Contract tests for instance identity resolution

The resolver is best-effort: every metadata failure degrades to the hostname.
"""

import pytest
import requests

from diskwatch.collectors import identity
from diskwatch.collectors.identity import TOKEN_HEADER, TOKEN_TTL_HEADER, resolve_identity
from diskwatch.config import CheckConfig

CONFIG = CheckConfig(
    topic_arn="arn:aws:sns:us-east-1:123456789012:disk-alerts",
    metadata_url="http://imds.test",
)


class FakeResponse:
    def __init__(self, text: str = "", status_code: int = 200) -> None:
        self.text = text
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    """
    Records calls; responses are values or exceptions to raise
    """

    def __init__(self, token=FakeResponse("tok-123"), instance=FakeResponse("i-0abc")) -> None:
        self.token = token
        self.instance = instance
        self.calls = []

    def _answer(self, value):
        if isinstance(value, Exception):
            raise value
        return value

    def put(self, url, headers=None, timeout=None):
        self.calls.append(("PUT", url, headers, timeout))
        return self._answer(self.token)

    def get(self, url, headers=None, timeout=None):
        self.calls.append(("GET", url, headers, timeout))
        return self._answer(self.instance)


@pytest.fixture(autouse=True)
def _fixed_hostname(monkeypatch) -> None:
    monkeypatch.setattr(identity.socket, "gethostname", lambda: "web-01")


def test_imds_instance_id_used_when_token_present() -> None:
    session = FakeSession()

    result = resolve_identity(CONFIG, session=session)

    assert result.identifier == "i-0abc"
    assert result.source == "imds"

    put, get = session.calls
    assert put[0] == "PUT"
    assert put[1] == "http://imds.test/latest/api/token"
    assert put[2] == {TOKEN_TTL_HEADER: "60"}
    assert put[3] == CONFIG.metadata_timeout_s
    assert get[1] == "http://imds.test/latest/meta-data/instance-id"
    assert get[2] == {TOKEN_HEADER: "tok-123"}


def test_empty_token_falls_back_to_hostname() -> None:
    """
    Empty token -> hostname, and no instance-id lookup is attempted
    """
    session = FakeSession(token=FakeResponse(""))

    result = resolve_identity(CONFIG, session=session)

    assert result.identifier == "web-01"
    assert result.source == "hostname"
    assert [call[0] for call in session.calls] == ["PUT"]


@pytest.mark.parametrize(
    "token",
    [
        requests.ConnectionError("no route to host"),
        requests.Timeout("timed out"),
        FakeResponse("denied", status_code=403),
    ],
)
def test_token_failure_falls_back_to_hostname(token) -> None:
    result = resolve_identity(CONFIG, session=FakeSession(token=token))

    assert result.identifier == "web-01"
    assert result.reason == "metadata token unavailable"


def test_instance_id_failure_falls_back_to_hostname() -> None:
    session = FakeSession(instance=FakeResponse("", status_code=404))

    result = resolve_identity(CONFIG, session=session)

    assert result.identifier == "web-01"
    assert result.source == "hostname"
    assert result.reason == "instance-id lookup failed"
