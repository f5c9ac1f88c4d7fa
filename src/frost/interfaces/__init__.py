"""Interface definitions for Frost's external collaborators."""

from frost.interfaces.account_directory import AccountDirectory
from frost.interfaces.cluster_provider import ClusterProvider
from frost.interfaces.config_store import ConfigStore
from frost.interfaces.identity_provider import IdentityProvider
from frost.interfaces.sso_types import (
    Account,
    ClientRegistration,
    ClusterInfo,
    DeviceAuthorization,
    EKSCluster,
    Role,
    TokenGrant,
)
from frost.interfaces.verification_surface import VerificationSurface

__all__ = [
    "Account",
    "AccountDirectory",
    "ClientRegistration",
    "ClusterInfo",
    "ClusterProvider",
    "ConfigStore",
    "DeviceAuthorization",
    "EKSCluster",
    "IdentityProvider",
    "Role",
    "TokenGrant",
    "VerificationSurface",
]
