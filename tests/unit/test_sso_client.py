"""Unit tests for the AWS SSO client."""

from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from frost.clients.sso_client import DEVICE_CODE_GRANT_TYPE, SSOClient
from frost.core.exceptions import (
    AuthError,
    AuthorizationPendingError,
    DiscoveryError,
    InvalidClientError,
    RegistrationError,
    SlowDownError,
)


def client_error(code: str, operation: str = "CreateToken") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


@pytest.fixture
def services():
    """Mock sso-oidc and sso service clients keyed by service name."""
    return {"sso-oidc": MagicMock(), "sso": MagicMock()}


@pytest.fixture
def sso_client(services) -> SSOClient:
    """SSOClient backed by the mock services."""
    session = MagicMock()
    session.client.side_effect = lambda service, region_name: services[service]
    return SSOClient(region="eu-west-1", session=session)


class TestInitialization:
    """Tests for SSOClient initialization."""

    def test_default_session(self):
        """Test a regional boto3 session is created when none is given."""
        with patch("frost.clients.sso_client.boto3.Session") as mock_session:
            client = SSOClient(region="eu-west-1")

        mock_session.assert_called_once_with(region_name="eu-west-1")
        assert client.region == "eu-west-1"
        assert mock_session.return_value.client.call_count == 2


class TestRegisterClient:
    """Tests for register_client."""

    def test_success(self, sso_client, services):
        """Test a public client registration."""
        services["sso-oidc"].register_client.return_value = {
            "clientId": "id",
            "clientSecret": "secret",
            "clientIdIssuedAt": 1700000000,
            "clientSecretExpiresAt": 1707776000,
        }

        registration = sso_client.register_client("Frost-abc")

        services["sso-oidc"].register_client.assert_called_once_with(
            clientName="Frost-abc", clientType="public"
        )
        assert registration.client_id == "id"
        assert registration.expires_at == 1707776000

    def test_client_error(self, sso_client, services):
        """Test a rejected registration."""
        services["sso-oidc"].register_client.side_effect = client_error(
            "InvalidRequestException", "RegisterClient"
        )

        with pytest.raises(RegistrationError, match="InvalidRequestException"):
            sso_client.register_client("Frost-abc")

    def test_connection_error(self, sso_client, services):
        """Test an unreachable endpoint."""
        services["sso-oidc"].register_client.side_effect = EndpointConnectionError(
            endpoint_url="https://oidc.eu-west-1.amazonaws.com"
        )

        with pytest.raises(RegistrationError):
            sso_client.register_client("Frost-abc")


class TestStartDeviceAuthorization:
    """Tests for start_device_authorization."""

    def test_success(self, sso_client, services):
        """Test the device authorization response mapping."""
        services["sso-oidc"].start_device_authorization.return_value = {
            "deviceCode": "device",
            "userCode": "ABCD-EFGH",
            "verificationUri": "https://device.sso.eu-west-1.amazonaws.com/",
            "verificationUriComplete": (
                "https://device.sso.eu-west-1.amazonaws.com/?user_code=ABCD-EFGH"
            ),
            "expiresIn": 600,
            "interval": 1,
        }

        authorization = sso_client.start_device_authorization("id", "secret", "https://start")

        assert authorization.device_code == "device"
        assert authorization.interval == 1
        assert authorization.expires_in == 600
        assert authorization.user_code == "ABCD-EFGH"

    def test_missing_interval_defaults(self, sso_client, services):
        """Test the default polling interval."""
        services["sso-oidc"].start_device_authorization.return_value = {
            "deviceCode": "device",
            "verificationUriComplete": "https://device",
            "expiresIn": 600,
        }

        assert sso_client.start_device_authorization("id", "secret", "https://start").interval == 5

    def test_invalid_client(self, sso_client, services):
        """Test an unknown client."""
        services["sso-oidc"].start_device_authorization.side_effect = client_error(
            "InvalidClientException"
        )

        with pytest.raises(InvalidClientError):
            sso_client.start_device_authorization("id", "secret", "https://start")


class TestCreateToken:
    """Tests for create_token."""

    def test_success(self, sso_client, services):
        """Test a completed authorization."""
        services["sso-oidc"].create_token.return_value = {
            "accessToken": "token",
            "expiresIn": 28800,
            "tokenType": "Bearer",
        }

        grant = sso_client.create_token("id", "secret", "device")

        services["sso-oidc"].create_token.assert_called_once_with(
            clientId="id",
            clientSecret="secret",
            grantType=DEVICE_CODE_GRANT_TYPE,
            deviceCode="device",
        )
        assert grant.access_token == "token"
        assert grant.expires_in == 28800

    @pytest.mark.parametrize(
        ("code", "expected"),
        [
            ("AuthorizationPendingException", AuthorizationPendingError),
            ("SlowDownException", SlowDownError),
            ("InvalidClientException", InvalidClientError),
            ("ExpiredTokenException", AuthError),
            ("AccessDeniedException", AuthError),
        ],
    )
    def test_error_mapping(self, sso_client, services, code, expected):
        """Test OIDC error codes map onto the device flow exceptions."""
        services["sso-oidc"].create_token.side_effect = client_error(code)

        with pytest.raises(expected):
            sso_client.create_token("id", "secret", "device")


class TestListing:
    """Tests for account and role listing."""

    def test_list_accounts(self, sso_client, services):
        """Test accounts are collected across pages."""
        paginator = services["sso"].get_paginator.return_value
        paginator.paginate.return_value = [
            {"accountList": [{"accountId": "1", "accountName": "One"}]},
            {"accountList": [{"accountId": "2", "accountName": "Two"}]},
        ]

        accounts = sso_client.list_accounts("token")

        services["sso"].get_paginator.assert_called_once_with("list_accounts")
        paginator.paginate.assert_called_once_with(accessToken="token")
        assert [(a.account_id, a.account_name) for a in accounts] == [("1", "One"), ("2", "Two")]

    def test_list_account_roles(self, sso_client, services):
        """Test roles are listed for one account."""
        paginator = services["sso"].get_paginator.return_value
        paginator.paginate.return_value = [
            {"roleList": [{"accountId": "1", "roleName": "AdministratorAccess"}]},
        ]

        roles = sso_client.list_account_roles("token", "1")

        paginator.paginate.assert_called_once_with(accessToken="token", accountId="1")
        assert roles[0].role_name == "AdministratorAccess"
        assert roles[0].account_id == "1"

    def test_list_accounts_failure(self, sso_client, services):
        """Test listing errors become DiscoveryError."""
        services["sso"].get_paginator.return_value.paginate.side_effect = client_error(
            "UnauthorizedException", "ListAccounts"
        )

        with pytest.raises(DiscoveryError, match="UnauthorizedException"):
            sso_client.list_accounts("token")
