"""Pytest configuration and shared fixtures."""

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from frost.core.models import Profile, RegisteredClient, UserConfig
from frost.interfaces.config_store import ConfigStore
from frost.interfaces.sso_types import ClusterInfo, EKSCluster
from frost.interfaces.verification_surface import VerificationSurface

START = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class InMemoryConfigStore(ConfigStore):
    """Dict-backed store recording every write."""

    def __init__(self, data: dict[str, Any] | None = None):
        self.data = dict(data or {})
        self.writes: list[tuple[str, Any]] = []

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.writes.append((key, value))
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class FakeClock:
    """Manually advanced clock; ``sleep`` moves it forward."""

    def __init__(self, now: datetime = START):
        self.now = now
        self.sleeps: list[float] = []

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(seconds)


class FakeTimer:
    """Timer that only fires when the test says so."""

    def __init__(self, delay: float, callback):
        self.delay = delay
        self.callback = callback
        self.daemon = False
        self.started = False
        self.cancelled = False
        self.fired = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        self.fired = True
        self.callback()


class TimerRecorder:
    """Timer factory keeping every timer it built."""

    def __init__(self):
        self.timers: list[FakeTimer] = []

    def __call__(self, delay: float, callback) -> FakeTimer:
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def last(self) -> FakeTimer:
        return self.timers[-1]

    @property
    def pending(self) -> list[FakeTimer]:
        return [t for t in self.timers if t.started and not (t.cancelled or t.fired)]


class FakeSurface(VerificationSurface):
    """Verification surface the test can close at a chosen poll."""

    def __init__(self):
        self.url: str | None = None
        self.opened = False
        self.closed = False

    def open(self, url: str) -> None:
        self.url = url
        self.opened = True
        self.closed = False

    def is_open(self) -> bool:
        return self.opened and not self.closed

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def store() -> InMemoryConfigStore:
    """Provide an empty in-memory config store."""
    return InMemoryConfigStore()


@pytest.fixture
def clock() -> FakeClock:
    """Provide a fake clock starting at a fixed instant."""
    return FakeClock()


@pytest.fixture
def timers() -> TimerRecorder:
    """Provide a recording timer factory."""
    return TimerRecorder()


@pytest.fixture
def user_config() -> UserConfig:
    """Provide a sample SSO portal configuration."""
    return UserConfig(start_url="https://example.awsapps.com/start", region="eu-west-1")


@pytest.fixture
def registered_client() -> RegisteredClient:
    """Provide a client registration valid for 90 days from START."""
    issued_at = int(START.timestamp())
    return RegisteredClient(
        client_name="Frost-1234",
        client_id="client-id",
        client_secret="client-secret",
        issued_at=issued_at,
        expires_at=issued_at + 90 * 24 * 3600,
    )


def make_profile(
    account_name: str = "prod",
    role_name: str = "admin",
    account_id: str = "111111111111",
    region: str = "us-east-1",
) -> Profile:
    """Build a profile the way the generator names it."""
    return Profile(
        name=f"{account_name}-{role_name}",
        sso_start_url="https://example.awsapps.com/start",
        sso_region="eu-west-1",
        sso_account_id=account_id,
        sso_role_name=role_name,
        region=region,
        account_name=account_name,
        role_name=role_name,
    )


def make_cluster_info(
    name: str,
    profile: Profile | None = None,
    region: str = "us-east-1",
) -> ClusterInfo:
    """Build a discovered cluster."""
    return ClusterInfo(
        cluster=EKSCluster(
            name=name,
            endpoint=f"https://{name}.eks.example.com",
            certificate_authority_data="Q0EtREFUQQ==",
        ),
        profile=profile or make_profile(),
        region=region,
    )


@pytest.fixture
def sample_profile() -> Profile:
    """Provide a sample profile."""
    return make_profile()


@pytest.fixture
def profile_factory():
    """Provide a profile builder."""
    return make_profile


@pytest.fixture
def cluster_info_factory():
    """Provide a discovered-cluster builder."""
    return make_cluster_info


@pytest.fixture
def surface() -> FakeSurface:
    """Provide a verification surface the test controls."""
    return FakeSurface()
