"""Pytest configuration and shared fixtures."""

import pytest

# Load environment variables from .env file at test startup
from dotenv import load_dotenv
load_dotenv()

from garmin_connect import AuthParameters, OAuth2Token


class RecordingRefresher:
    """Token refresher that issues numbered tokens and logs each call.

    Every refresh appends ``"refresh"`` to the shared ``events`` list so
    tests can check the order of refreshes and sends.
    """

    def __init__(self, events: list[str] | None = None) -> None:
        self.events = events if events is not None else []
        self.calls = 0

    def refresh(self) -> OAuth2Token:
        self.calls += 1
        self.events.append("refresh")
        return OAuth2Token(access_token=f"token-{self.calls}")


class AsyncRecordingRefresher(RecordingRefresher):
    """Async variant of ``RecordingRefresher``."""

    async def refresh(self) -> OAuth2Token:  # type: ignore[override]
        return RecordingRefresher.refresh(self)


@pytest.fixture
def auth_parameters() -> AuthParameters:
    """Parameters pointing at a fake Garmin host with a session cookie."""
    return AuthParameters(
        base_url="https://connect.example.com",
        cookies="SESSIONID=abc123; GARMIN-SSO=1",
    )


@pytest.fixture
def events() -> list[str]:
    """Shared log of refresh/send events."""
    return []


@pytest.fixture
def refresher(events: list[str]) -> RecordingRefresher:
    return RecordingRefresher(events)


@pytest.fixture
def async_refresher(events: list[str]) -> AsyncRecordingRefresher:
    return AsyncRecordingRefresher(events)
