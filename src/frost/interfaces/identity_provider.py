"""Identity provider interface for the SSO OAuth device flow."""

from abc import ABC, abstractmethod

from frost.interfaces.sso_types import ClientRegistration, DeviceAuthorization, TokenGrant


class IdentityProvider(ABC):
    """Abstract interface for the SSO OIDC endpoint.

    Implementations translate provider-specific failures into Frost's
    exception hierarchy so callers never see SDK exceptions.
    """

    @abstractmethod
    def register_client(self, client_name: str) -> ClientRegistration:
        """Register a public device-grant client.

        Args:
            client_name: Display name of the client

        Returns:
            ClientRegistration with credentials and validity window

        Raises:
            RegistrationError: If the endpoint rejects or cannot process the request
        """

    @abstractmethod
    def start_device_authorization(
        self, client_id: str, client_secret: str, start_url: str
    ) -> DeviceAuthorization:
        """Start a device authorization grant.

        Args:
            client_id: Registered client ID
            client_secret: Registered client secret
            start_url: SSO start URL the user signs in to

        Returns:
            DeviceAuthorization with the verification URL and polling parameters

        Raises:
            InvalidClientError: If the endpoint does not recognize the client
            AuthError: If the grant cannot be started
        """

    @abstractmethod
    def create_token(self, client_id: str, client_secret: str, device_code: str) -> TokenGrant:
        """Exchange a device code for an access token.

        Args:
            client_id: Registered client ID
            client_secret: Registered client secret
            device_code: Device code from the authorization grant

        Returns:
            TokenGrant once the user has approved the request

        Raises:
            AuthorizationPendingError: If the user has not approved yet
            SlowDownError: If the client is polling too fast
            InvalidClientError: If the endpoint does not recognize the client
            AuthError: For any other token exchange failure
        """
