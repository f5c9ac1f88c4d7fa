"""Key-value store interface for persisted application state."""

from abc import ABC, abstractmethod
from typing import Any


class ConfigStore(ABC):
    """Abstract interface for the persisted application config.

    Keys are independent; a write to one key never depends on another.
    Values must be JSON-compatible.

    Keys used by Frost:
    - ``userConfig``: SSO start URL and region
    - ``accessToken`` / ``expiresAt``: current access token and its expiry
    - ``ssoClient``: registered OAuth client
    - ``lastError``: text of the last refresh failure
    - ``isWorking``: whether a refresh cycle is running
    - ``clusters``: summary of the last discovered clusters
    """

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Get a value, or ``default`` when the key is not set."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Set a value.

        Raises:
            PersistenceError: If the value cannot be persisted
        """

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete a key; deleting a missing key is a no-op.

        Raises:
            PersistenceError: If the change cannot be persisted
        """
