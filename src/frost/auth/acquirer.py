"""Device authorization and polling state machine for SSO access tokens."""

import time
from collections.abc import Callable
from datetime import datetime, timedelta
from enum import Enum

from frost.core.exceptions import (
    AuthError,
    AuthorizationCancelledError,
    AuthorizationPendingError,
    AuthorizationTimeoutError,
    InvalidClientError,
    SlowDownError,
)
from frost.core.models import RegisteredClient, TokenState, UserConfig, utcnow
from frost.interfaces.config_store import ConfigStore
from frost.interfaces.identity_provider import IdentityProvider
from frost.interfaces.sso_types import DeviceAuthorization
from frost.interfaces.verification_surface import VerificationSurface
from frost.utils.logging import get_logger

logger = get_logger(__name__)

ACCESS_TOKEN_KEY = "accessToken"
EXPIRES_AT_KEY = "expiresAt"

# RFC 8628 section 3.5
SLOW_DOWN_INCREMENT_SECONDS = 5


class AcquisitionState(str, Enum):
    """States of a token acquisition."""

    START = "start"
    AWAITING_USER_AUTHORIZATION = "awaiting-user-authorization"
    SUCCESS = "success"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    FAILED = "failed"


class TokenAcquirer:
    """Runs the OAuth device authorization grant until a token is issued.

    Polling uses the interval declared by the provider and ends when a token
    is issued, the grant expires, or the user closes the verification surface.
    """

    def __init__(
        self,
        store: ConfigStore,
        provider_factory: Callable[[UserConfig], IdentityProvider],
        surface_factory: Callable[[], VerificationSurface],
        clock: Callable[[], datetime] = utcnow,
        sleep: Callable[[float], None] | None = None,
    ):
        """Initialize acquirer.

        Args:
            store: Persisted application config
            provider_factory: Builds the identity provider for a user config
            surface_factory: Builds a fresh verification surface per acquisition
            clock: Source of the current time
            sleep: Suspends the caller between polls
        """
        self.store = store
        self.provider_factory = provider_factory
        self.surface_factory = surface_factory
        self.clock = clock
        self.sleep = sleep or time.sleep
        self.state = AcquisitionState.START
        self.poll_attempts = 0

    def acquire_token(self, user_config: UserConfig, client: RegisteredClient) -> TokenState:
        """Obtain and persist a new access token.

        Args:
            user_config: SSO portal configuration
            client: Registered OIDC client

        Returns:
            TokenState with the new token and its expiry

        Raises:
            AuthorizationTimeoutError: If the grant expires first
            AuthorizationCancelledError: If the user closes the verification surface
            InvalidClientError: If the endpoint rejects the client
            AuthError: If the grant cannot be started
        """
        self.state = AcquisitionState.START
        self.poll_attempts = 0
        provider = self.provider_factory(user_config)

        try:
            authorization = provider.start_device_authorization(
                client.client_id, client.client_secret, user_config.start_url
            )
        except AuthError:
            self.state = AcquisitionState.FAILED
            raise

        grant_expires_at = self.clock() + timedelta(seconds=authorization.expires_in)
        logger.debug(
            "device_authorization_started",
            interval=authorization.interval,
            grant_expires_at=grant_expires_at.isoformat(),
        )

        surface = self.surface_factory()
        try:
            surface.open(authorization.verification_uri_complete)
            self.state = AcquisitionState.AWAITING_USER_AUTHORIZATION
            token = self._poll(provider, client, authorization, surface, grant_expires_at)
        finally:
            surface.close()

        self._persist(token)
        self.state = AcquisitionState.SUCCESS
        logger.info("token_acquired", expires_at=token.expires_at.isoformat())
        return token

    def _poll(
        self,
        provider: IdentityProvider,
        client: RegisteredClient,
        authorization: DeviceAuthorization,
        surface: VerificationSurface,
        grant_expires_at: datetime,
    ) -> TokenState:
        interval = authorization.interval

        while self.clock() < grant_expires_at:
            logger.debug("polling_sleep", seconds=interval)
            self.sleep(interval)
            self.poll_attempts += 1

            try:
                grant = provider.create_token(
                    client.client_id, client.client_secret, authorization.device_code
                )
            except AuthorizationPendingError as e:
                if isinstance(e, SlowDownError):
                    interval += SLOW_DOWN_INCREMENT_SECONDS
                    logger.debug("polling_slow_down", interval=interval)
                else:
                    logger.debug("authorization_pending")
                if not surface.is_open():
                    self._cancelled(e)
                continue
            except InvalidClientError:
                self.state = AcquisitionState.FAILED
                raise
            except AuthError as e:
                logger.warning("token_poll_failed", error=str(e))
                if not surface.is_open():
                    self._cancelled(e)
                continue

            return TokenState(
                access_token=grant.access_token,
                expires_at=self.clock() + timedelta(seconds=grant.expires_in),
            )

        self.state = AcquisitionState.TIMEOUT
        logger.warning("device_authorization_timed_out", attempts=self.poll_attempts)
        raise AuthorizationTimeoutError("Login timed out")

    def _cancelled(self, cause: Exception) -> None:
        self.state = AcquisitionState.CANCELLED
        logger.warning("verification_surface_closed", attempts=self.poll_attempts)
        raise AuthorizationCancelledError("Login cancelled by user") from cause

    def _persist(self, token: TokenState) -> None:
        self.store.set(ACCESS_TOKEN_KEY, token.access_token)
        self.store.set(EXPIRES_AT_KEY, token.expires_at.isoformat())
