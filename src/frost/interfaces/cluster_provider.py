"""Cluster provider interface for region and EKS lookups."""

from abc import ABC, abstractmethod

from frost.interfaces.sso_types import EKSCluster


class ClusterProvider(ABC):
    """Abstract interface for resource lookups scoped by a named profile.

    Every call authenticates as ``profile``, whose short-lived credentials are
    derived from the SSO access token.
    """

    @abstractmethod
    def list_regions(self, profile: str) -> list[str]:
        """List region names enabled for the profile's account.

        Raises:
            DiscoveryError: If the listing fails
        """

    @abstractmethod
    def list_clusters(self, profile: str, region: str) -> list[str]:
        """List EKS cluster names in a region, following pagination.

        Raises:
            DiscoveryError: If the listing fails
        """

    @abstractmethod
    def describe_cluster(self, profile: str, region: str, name: str) -> EKSCluster:
        """Get connection details of one cluster.

        Raises:
            DiscoveryError: If the cluster cannot be described
        """

    def reset(self) -> None:
        """Forget cached sessions after the profiles were rewritten."""
