"""Shared fixtures for the jambojet test suite."""
from __future__ import annotations

from unittest.mock import MagicMock

import httpx
import pytest

from jambojet.config import Config, EnvironmentProfile, Settings

BASE_URL = "https://jmtest.booking.jambojet.com/jm/dotrez/"


@pytest.fixture
def fake_settings() -> Settings:
    return Settings(
        subscription_key="sub-key-1234567890abcdef",
        environment="test",
        retry_attempts=3,
        retry_delay=0.0,
        cache_enabled=True,
        cache_ttl=300,
        username="agent",
        password="secret",
        domain="WWW",
    )


@pytest.fixture
def fake_environments() -> dict[str, EnvironmentProfile]:
    return {"test": EnvironmentProfile(base_url=BASE_URL, description="JamboJet test")}


@pytest.fixture
def fake_config(fake_settings, fake_environments) -> Config:
    return Config(settings=fake_settings, environments=fake_environments)


@pytest.fixture
def mock_client():
    """MagicMock standing in for JamboJetClient."""
    client = MagicMock()
    client.get = MagicMock()
    client.post = MagicMock()
    client.put = MagicMock()
    client.patch = MagicMock()
    client.delete = MagicMock()
    client.close = MagicMock()
    return client


def make_response(status_code: int = 200, json_data=None, headers: dict | None = None) -> httpx.Response:
    """Build a real httpx.Response; ``json_data=None`` gives an empty body."""
    if json_data is None:
        return httpx.Response(status_code, headers=headers)
    return httpx.Response(status_code, json=json_data, headers=headers)
