"""
Pytest Configuration and Fixtures - Session Monitor

Provides a controllable clock, tracker instances and an API client
bound to the application lifespan.
"""

from datetime import datetime, timedelta, UTC
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from session_monitor.api.main import app
from session_monitor.monitoring import CircuitEventListener, SessionTracker, StatusFile


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: unit tests (no infrastructure)")
    config.addinivalue_line("markers", "integration: API tests against the ASGI app")


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 5, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tracker(clock: FakeClock) -> SessionTracker:
    """Tracker driven by the fake clock."""
    return SessionTracker(clock=clock)


@pytest.fixture
def status_file(tmp_path) -> StatusFile:
    return StatusFile(tmp_path / "reconnection-status.json")


@pytest_asyncio.fixture
async def api_client(
    tracker: SessionTracker,
    status_file: StatusFile,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Get async HTTP client for API tests.

    Runs the real lifespan, then swaps in the fake-clock tracker, a
    circuit listener bound to it and a temporary status file.
    """
    from session_monitor.api.main import lifespan

    async with lifespan(app):
        app.state.session_tracker = tracker
        app.state.circuit_listener = CircuitEventListener(tracker)
        app.state.status_file = status_file
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
