"""Tests for the device authorization polling state machine."""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from frost.auth.acquirer import (
    ACCESS_TOKEN_KEY,
    EXPIRES_AT_KEY,
    SLOW_DOWN_INCREMENT_SECONDS,
    AcquisitionState,
    TokenAcquirer,
)
from frost.core.exceptions import (
    AuthError,
    AuthorizationCancelledError,
    AuthorizationPendingError,
    AuthorizationTimeoutError,
    InvalidClientError,
    SlowDownError,
)
from frost.interfaces.sso_types import DeviceAuthorization, TokenGrant

INTERVAL = 5
GRANT_LIFETIME = 600


@pytest.fixture
def provider():
    """Mock identity provider with a started device authorization."""
    provider = MagicMock()
    provider.start_device_authorization.return_value = DeviceAuthorization(
        device_code="device-code",
        verification_uri_complete="https://device.sso.example.com/?user_code=ABCD-EFGH",
        interval=INTERVAL,
        expires_in=GRANT_LIFETIME,
        user_code="ABCD-EFGH",
    )
    return provider


@pytest.fixture
def acquirer(store, provider, surface, clock):
    """Acquirer wired to fakes; sleeping advances the fake clock."""
    return TokenAcquirer(
        store,
        provider_factory=lambda _config: provider,
        surface_factory=lambda: surface,
        clock=clock,
        sleep=clock.sleep,
    )


def grant(expires_in: int = 28800) -> TokenGrant:
    return TokenGrant(access_token="access-token", expires_in=expires_in)


def test_pending_then_success(
    acquirer, provider, surface, store, clock, user_config, registered_client
):
    """Test N pending responses lead to N + 1 polls at the declared interval."""
    pending = 3
    provider.create_token.side_effect = [AuthorizationPendingError()] * pending + [grant()]

    token = acquirer.acquire_token(user_config, registered_client)

    assert provider.create_token.call_count == pending + 1
    assert acquirer.poll_attempts == pending + 1
    assert clock.sleeps == [INTERVAL] * (pending + 1)
    assert acquirer.state == AcquisitionState.SUCCESS
    assert token.access_token == "access-token"
    assert token.expires_at == clock() + timedelta(seconds=28800)
    assert store.get(ACCESS_TOKEN_KEY) == "access-token"
    assert store.get(EXPIRES_AT_KEY) == token.expires_at.isoformat()


def test_opens_and_closes_surface(acquirer, provider, surface, user_config, registered_client):
    """Test the verification URL is shown and the surface closed afterwards."""
    provider.create_token.return_value = grant()

    acquirer.acquire_token(user_config, registered_client)

    assert surface.url == "https://device.sso.example.com/?user_code=ABCD-EFGH"
    assert surface.closed
    provider.start_device_authorization.assert_called_once_with(
        "client-id", "client-secret", user_config.start_url
    )


def test_timeout_when_grant_expires(
    acquirer, provider, surface, store, clock, user_config, registered_client
):
    """Test polling stops once the grant lifetime has elapsed."""
    provider.create_token.side_effect = AuthorizationPendingError()

    with pytest.raises(AuthorizationTimeoutError, match="Login timed out"):
        acquirer.acquire_token(user_config, registered_client)

    assert acquirer.state == AcquisitionState.TIMEOUT
    assert acquirer.poll_attempts == GRANT_LIFETIME // INTERVAL
    assert surface.closed
    assert store.get(ACCESS_TOKEN_KEY) is None


def test_cancelled_when_surface_closed(
    acquirer, provider, surface, user_config, registered_client
):
    """Test that closing the surface ends polling as cancelled."""
    calls = 0

    def create_token(*_args):
        nonlocal calls
        calls += 1
        if calls == 2:
            surface.closed = True
        raise AuthorizationPendingError()

    provider.create_token.side_effect = create_token

    with pytest.raises(AuthorizationCancelledError):
        acquirer.acquire_token(user_config, registered_client)

    assert acquirer.state == AcquisitionState.CANCELLED
    assert acquirer.poll_attempts == 2


def test_failure_after_surface_closed_is_cancelled(
    acquirer, provider, surface, user_config, registered_client
):
    """Test that a poll failure once the user closed the surface ends as cancelled."""
    failure = AuthError("network")

    def create_token(*_args):
        surface.closed = True
        raise failure

    provider.create_token.side_effect = create_token

    with pytest.raises(AuthorizationCancelledError) as exc_info:
        acquirer.acquire_token(user_config, registered_client)

    assert exc_info.value.__cause__ is failure
    assert acquirer.state == AcquisitionState.CANCELLED
    assert acquirer.poll_attempts == 1


def test_success_wins_over_closed_surface(
    acquirer, provider, surface, user_config, registered_client
):
    """Test that a token issued as the user closes the surface is still used."""

    def create_token(*_args):
        surface.closed = True
        return grant()

    provider.create_token.side_effect = create_token

    token = acquirer.acquire_token(user_config, registered_client)

    assert token.access_token == "access-token"
    assert acquirer.state == AcquisitionState.SUCCESS


def test_slow_down_increases_interval(acquirer, provider, clock, user_config, registered_client):
    """Test that a slow-down response lengthens the polling interval."""
    provider.create_token.side_effect = [SlowDownError(), AuthorizationPendingError(), grant()]

    acquirer.acquire_token(user_config, registered_client)

    slower = INTERVAL + SLOW_DOWN_INCREMENT_SECONDS
    assert clock.sleeps == [INTERVAL, slower, slower]


def test_invalid_client_fails_fast(acquirer, provider, surface, user_config, registered_client):
    """Test that a rejected client stops polling immediately."""
    provider.create_token.side_effect = [AuthorizationPendingError(), InvalidClientError("gone")]

    with pytest.raises(InvalidClientError):
        acquirer.acquire_token(user_config, registered_client)

    assert acquirer.state == AcquisitionState.FAILED
    assert acquirer.poll_attempts == 2
    assert surface.closed


def test_transient_errors_keep_polling(acquirer, provider, user_config, registered_client):
    """Test that other poll failures are retried."""
    provider.create_token.side_effect = [AuthError("network"), grant()]

    acquirer.acquire_token(user_config, registered_client)

    assert acquirer.poll_attempts == 2
    assert acquirer.state == AcquisitionState.SUCCESS


def test_start_failure(acquirer, provider, surface, user_config, registered_client):
    """Test that a failed device authorization never opens the surface."""
    provider.start_device_authorization.side_effect = AuthError("denied")

    with pytest.raises(AuthError, match="denied"):
        acquirer.acquire_token(user_config, registered_client)

    assert acquirer.state == AcquisitionState.FAILED
    assert not surface.opened
    provider.create_token.assert_not_called()


def test_new_acquisition_resets_counters(acquirer, provider, user_config, registered_client):
    """Test that poll counters start from zero per acquisition."""
    provider.create_token.side_effect = [AuthorizationPendingError(), grant(), grant()]

    acquirer.acquire_token(user_config, registered_client)
    acquirer.acquire_token(user_config, registered_client)

    assert acquirer.poll_attempts == 1
