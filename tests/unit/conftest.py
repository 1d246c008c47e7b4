"""
Pytest configuration for the unit test suite.
"""
import json
from urllib.parse import parse_qs

import httpx
import pytest


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Point HOME at a temporary directory and clear cw2slack overrides."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("CW2SLACK_LOG_LEVEL", raising=False)
    yield


@pytest.fixture
def mock_http():
    """Factory for an httpx.Client whose requests are answered by a handler."""
    def factory(handler) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(handler))

    return factory


@pytest.fixture
def decode_payload():
    """Decode the JSON document posted in the ``payload`` form field."""
    def decode(request: httpx.Request) -> dict:
        form = parse_qs(request.content.decode("utf-8"))
        assert list(form) == ["payload"]
        return json.loads(form["payload"][0])

    return decode
