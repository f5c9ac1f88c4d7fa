"""Data types exchanged with the identity and resource interfaces."""

from dataclasses import dataclass

from frost.core.models import Profile


@dataclass
class ClientRegistration:
    """Response of a device-grant client registration."""

    client_id: str
    client_secret: str
    issued_at: int
    expires_at: int


@dataclass
class DeviceAuthorization:
    """Device authorization grant started for a client."""

    device_code: str
    verification_uri_complete: str
    interval: int
    expires_in: int
    user_code: str | None = None
    verification_uri: str | None = None


@dataclass
class TokenGrant:
    """Access token issued for a device code."""

    access_token: str
    expires_in: int


@dataclass
class Account:
    """AWS account visible to the signed-in user."""

    account_id: str
    account_name: str


@dataclass
class Role:
    """Permission set the user can assume in an account."""

    account_id: str
    role_name: str


@dataclass
class EKSCluster:
    """EKS cluster connection details."""

    name: str
    endpoint: str
    certificate_authority_data: str


@dataclass
class ClusterInfo:
    """Cluster discovered through one profile in one region."""

    cluster: EKSCluster
    profile: Profile
    region: str
