"""Registration and reuse of the SSO OAuth device-grant client."""

import uuid
from collections.abc import Callable
from datetime import datetime

from pydantic import ValidationError

from frost.core.models import RegisteredClient, UserConfig, utcnow
from frost.interfaces.config_store import ConfigStore
from frost.interfaces.identity_provider import IdentityProvider
from frost.utils.logging import get_logger

logger = get_logger(__name__)

SSO_CLIENT_KEY = "ssoClient"


class ClientRegistrar:
    """Keeps one registered OIDC client per installation.

    The registration is persisted and reused across restarts. An expired
    registration is replaced under the same display name so every
    registration can be traced back to one logical client.
    """

    def __init__(
        self,
        store: ConfigStore,
        provider_factory: Callable[[UserConfig], IdentityProvider],
        client_name_prefix: str = "Frost",
        clock: Callable[[], datetime] = utcnow,
    ):
        """Initialize registrar.

        Args:
            store: Persisted application config
            provider_factory: Builds the identity provider for a user config
            client_name_prefix: Prefix of newly generated client names
            clock: Source of the current time
        """
        self.store = store
        self.provider_factory = provider_factory
        self.client_name_prefix = client_name_prefix
        self.clock = clock

    def load(self) -> RegisteredClient | None:
        """Read the persisted client, ignoring records that no longer parse."""
        data = self.store.get(SSO_CLIENT_KEY)
        if not data:
            return None
        try:
            return RegisteredClient.model_validate(data)
        except ValidationError as e:
            logger.warning("stored_sso_client_invalid", error=str(e))
            return None

    def get_or_register_client(self, user_config: UserConfig) -> RegisteredClient:
        """Return a usable client, registering one if needed.

        Args:
            user_config: SSO portal configuration

        Returns:
            RegisteredClient that has not expired

        Raises:
            RegistrationError: If the endpoint rejects or cannot process the registration
        """
        client = self.load()

        if client is None:
            logger.info("registering_new_client")
            client_name = f"{self.client_name_prefix}-{uuid.uuid4()}"
            client = self._register(user_config, client_name)
        elif client.is_expired(self.clock()):
            logger.info("re_registering_expired_client", client_name=client.client_name)
            client = self._register(user_config, client.client_name)

        logger.debug(
            "sso_client_ready",
            client_id=client.client_id,
            issued_at=client.issued_at,
            expires_at=client.expires_at,
        )
        return client

    def _register(self, user_config: UserConfig, client_name: str) -> RegisteredClient:
        provider = self.provider_factory(user_config)
        registration = provider.register_client(client_name)

        client = RegisteredClient(
            client_name=client_name,
            client_id=registration.client_id,
            client_secret=registration.client_secret,
            issued_at=registration.issued_at,
            expires_at=registration.expires_at,
        )
        self.store.set(SSO_CLIENT_KEY, client.to_store())
        return client

    def discard(self) -> None:
        """Forget the persisted client so the next cycle registers a new one."""
        self.store.delete(SSO_CLIENT_KEY)
        logger.warning("sso_client_discarded")
