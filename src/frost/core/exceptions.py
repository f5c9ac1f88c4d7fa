"""Custom exceptions for Frost."""


class FrostError(Exception):
    """Base exception for all Frost errors."""


class ConfigurationError(FrostError):
    """Configuration-related errors."""


class RegistrationError(FrostError):
    """The SSO endpoint rejected or could not process a client registration."""


class AuthError(FrostError):
    """Device authorization or token exchange failed."""


class InvalidClientError(AuthError):
    """The SSO endpoint does not recognize the registered client."""


class AuthorizationTimeoutError(AuthError):
    """The device grant expired before the user completed authorization."""


class AuthorizationCancelledError(AuthError):
    """The user closed the verification surface before authorization completed."""


class AuthorizationPendingError(FrostError):
    """The user has not completed authorization yet.

    Raised by identity providers while polling. This is an expected state of
    the device flow, not a failure.
    """


class SlowDownError(AuthorizationPendingError):
    """The provider asked the client to poll less frequently."""


class DiscoveryError(FrostError):
    """A single account, profile or region lookup failed."""


class PersistenceError(FrostError):
    """Writing a config, cache or state file failed."""
