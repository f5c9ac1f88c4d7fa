"""Account directory interface for listing SSO accounts and roles."""

from abc import ABC, abstractmethod

from frost.interfaces.sso_types import Account, Role


class AccountDirectory(ABC):
    """Abstract interface for the SSO portal's account listing."""

    @abstractmethod
    def list_accounts(self, access_token: str) -> list[Account]:
        """List every account the token can see, following pagination.

        Raises:
            DiscoveryError: If the listing fails
        """

    @abstractmethod
    def list_account_roles(self, access_token: str, account_id: str) -> list[Role]:
        """List every role assignable in an account, following pagination.

        Raises:
            DiscoveryError: If the listing fails
        """
