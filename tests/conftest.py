"""
Pytest configuration and shared fixtures.
"""

import os
import sys
import pytest
from unittest.mock import AsyncMock, patch

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


# ============================================================================
# Environment Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def mock_env(monkeypatch):
    """Set up test environment variables."""
    monkeypatch.setenv("DIGGER_JENKINS_URL", "https://jenkins.example.com/")
    monkeypatch.setenv("DIGGER_JENKINS_USER", "admin")
    monkeypatch.setenv("DIGGER_JENKINS_PASSWORD", "secret")
    monkeypatch.setenv("DIGGER_POLL_PERIOD", "0.5")
    monkeypatch.setenv("DIGGER_FIRST_CHECK_DELAY", "1")


# ============================================================================
# Fakes
# ============================================================================

class FakeClock:
    """Clock whose time only moves when something sleeps."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeJenkins:
    """
    Server handle whose queue item follows a timeline.

    ``timeline`` maps the current fake time to a queue item payload as
    Jenkins would return it.
    """

    def __init__(self, clock: FakeClock, timeline=None):
        from digger.services.jenkins.schemas import QueueReference

        self.clock = clock
        self.timeline = timeline or (lambda t: {})
        self.reference = QueueReference("https://jenkins.example.com/queue/item/42/")
        self.poll_times: list[float] = []
        self.enqueued: list[tuple[str, dict]] = []

    async def enqueue_build(self, job_name, params=None):
        self.enqueued.append((job_name, dict(params or {})))
        return self.reference

    async def get_queue_item(self, queue_reference):
        from digger.services.jenkins.schemas import QueueItem

        self.poll_times.append(self.clock.now)
        return QueueItem.from_json(self.timeline(self.clock.now))

    async def get_build(self, job_name, number):
        from digger.services.jenkins.schemas import BuildInfo

        return BuildInfo(number=number, url=f"https://jenkins.example.com/job/{job_name}/{number}/")


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fake_jenkins(fake_clock):
    return FakeJenkins(fake_clock)


@pytest.fixture
def build_service(fake_clock):
    """BuildService with 1s first check delay and 0.5s poll period."""
    from digger.services.builds import BuildService
    return BuildService(first_check_delay=1.0, poll_period=0.5, clock=fake_clock)


# ============================================================================
# Mock Fixtures
# ============================================================================

@pytest.fixture
def mock_httpx_client():
    """Create a mock httpx AsyncClient."""
    with patch("httpx.AsyncClient") as mock:
        client_instance = AsyncMock()
        mock.return_value.__aenter__.return_value = client_instance
        yield client_instance


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def jenkins_client():
    """Create a JenkinsClient with test config."""
    from digger.services.jenkins.client import JenkinsClient
    return JenkinsClient("https://jenkins.example.com/", "admin", "secret")


@pytest.fixture
def client_config():
    from digger.core.config import ClientConfig
    return ClientConfig(
        url="https://jenkins.example.com",
        user="admin",
        password="secret",
        first_check_delay=1.0,
        poll_period=0.5,
    )
