"""AWS SSO client for the OIDC device flow and the account portal."""

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from frost.core.exceptions import (
    AuthError,
    AuthorizationPendingError,
    DiscoveryError,
    InvalidClientError,
    RegistrationError,
    SlowDownError,
)
from frost.interfaces.account_directory import AccountDirectory
from frost.interfaces.identity_provider import IdentityProvider
from frost.interfaces.sso_types import (
    Account,
    ClientRegistration,
    DeviceAuthorization,
    Role,
    TokenGrant,
)
from frost.utils.logging import get_logger
from frost.utils.retry import retry_on_exception

logger = get_logger(__name__)

DEVICE_CODE_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:device_code"


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "Unknown")


class SSOClient(IdentityProvider, AccountDirectory):
    """AWS client for the SSO OIDC and SSO portal APIs."""

    def __init__(self, region: str, session: boto3.Session | None = None):
        """Initialize SSO client.

        Args:
            region: Region hosting the SSO instance
            session: Existing boto3 session (optional)
        """
        self.region = region
        self.session = session or boto3.Session(region_name=region)

        self.oidc = self.session.client("sso-oidc", region_name=region)
        self.sso = self.session.client("sso", region_name=region)

        logger.debug("sso_client_initialized", region=region)

    def register_client(self, client_name: str) -> ClientRegistration:
        """Register a public device-grant client.

        Args:
            client_name: Display name of the client

        Returns:
            ClientRegistration

        Raises:
            RegistrationError: If registration fails
        """
        try:
            logger.info("registering_sso_client", client_name=client_name)

            response = self.oidc.register_client(clientName=client_name, clientType="public")

            registration = ClientRegistration(
                client_id=response["clientId"],
                client_secret=response["clientSecret"],
                issued_at=int(response["clientIdIssuedAt"]),
                expires_at=int(response["clientSecretExpiresAt"]),
            )

            logger.info(
                "sso_client_registered",
                client_name=client_name,
                expires_at=registration.expires_at,
            )
            return registration

        except ClientError as e:
            error_code = _error_code(e)
            logger.error("sso_client_registration_failed", error_code=error_code)
            raise RegistrationError(f"Failed to register client {client_name}: {error_code}") from e
        except BotoCoreError as e:
            logger.error("sso_client_registration_failed", error=str(e))
            raise RegistrationError(f"Failed to register client {client_name}: {e}") from e

    def start_device_authorization(
        self, client_id: str, client_secret: str, start_url: str
    ) -> DeviceAuthorization:
        """Start a device authorization grant.

        Raises:
            InvalidClientError: If the client is unknown to the endpoint
            AuthError: If the grant cannot be started
        """
        try:
            logger.debug("starting_device_authorization", start_url=start_url)

            response = self.oidc.start_device_authorization(
                clientId=client_id,
                clientSecret=client_secret,
                startUrl=start_url,
            )

            return DeviceAuthorization(
                device_code=response["deviceCode"],
                verification_uri_complete=response["verificationUriComplete"],
                interval=int(response.get("interval", 5)),
                expires_in=int(response["expiresIn"]),
                user_code=response.get("userCode"),
                verification_uri=response.get("verificationUri"),
            )

        except ClientError as e:
            error_code = _error_code(e)
            logger.error("device_authorization_failed", error_code=error_code)
            if error_code == "InvalidClientException":
                raise InvalidClientError(f"SSO client is not valid: {error_code}") from e
            raise AuthError(f"Failed to start device authorization: {error_code}") from e
        except BotoCoreError as e:
            logger.error("device_authorization_failed", error=str(e))
            raise AuthError(f"Failed to start device authorization: {e}") from e

    def create_token(self, client_id: str, client_secret: str, device_code: str) -> TokenGrant:
        """Exchange a device code for an access token.

        Raises:
            AuthorizationPendingError: If the user has not approved yet
            SlowDownError: If polling is too fast
            InvalidClientError: If the client is unknown to the endpoint
            AuthError: For any other failure
        """
        try:
            response = self.oidc.create_token(
                clientId=client_id,
                clientSecret=client_secret,
                grantType=DEVICE_CODE_GRANT_TYPE,
                deviceCode=device_code,
            )
            return TokenGrant(
                access_token=response["accessToken"],
                expires_in=int(response["expiresIn"]),
            )

        except ClientError as e:
            error_code = _error_code(e)
            if error_code == "AuthorizationPendingException":
                raise AuthorizationPendingError("Authorization pending") from e
            if error_code == "SlowDownException":
                raise SlowDownError("Polling too fast") from e
            if error_code == "InvalidClientException":
                raise InvalidClientError(f"SSO client is not valid: {error_code}") from e
            raise AuthError(f"Failed to create token: {error_code}") from e
        except BotoCoreError as e:
            raise AuthError(f"Failed to create token: {e}") from e

    @retry_on_exception(max_attempts=3)
    def _paginate(self, operation: str, key: str, **kwargs: str) -> list[dict]:
        paginator = self.sso.get_paginator(operation)
        items: list[dict] = []
        for page in paginator.paginate(**kwargs):
            items.extend(page.get(key, []))
        return items

    def list_accounts(self, access_token: str) -> list[Account]:
        """List every account visible to the access token.

        Raises:
            DiscoveryError: If the listing fails
        """
        try:
            items = self._paginate("list_accounts", "accountList", accessToken=access_token)
        except (ClientError, BotoCoreError) as e:
            logger.error("list_accounts_failed", error=str(e))
            raise DiscoveryError(f"Failed to list accounts: {e}") from e

        accounts = [
            Account(account_id=item["accountId"], account_name=item.get("accountName", ""))
            for item in items
        ]
        logger.info("accounts_listed", count=len(accounts))
        return accounts

    def list_account_roles(self, access_token: str, account_id: str) -> list[Role]:
        """List every role the user can assume in an account.

        Raises:
            DiscoveryError: If the listing fails
        """
        try:
            items = self._paginate(
                "list_account_roles",
                "roleList",
                accessToken=access_token,
                accountId=account_id,
            )
        except (ClientError, BotoCoreError) as e:
            logger.warning("list_account_roles_failed", account_id=account_id, error=str(e))
            raise DiscoveryError(f"Failed to list roles for account {account_id}: {e}") from e

        roles = [Role(account_id=item["accountId"], role_name=item["roleName"]) for item in items]
        logger.debug("account_roles_listed", account_id=account_id, count=len(roles))
        return roles
