"""AWS client for region and EKS lookups through generated SSO profiles."""

import threading
from pathlib import Path
from typing import Any

import boto3
import botocore.session
from botocore.exceptions import BotoCoreError, ClientError

from frost.core.exceptions import DiscoveryError
from frost.interfaces.cluster_provider import ClusterProvider
from frost.interfaces.sso_types import EKSCluster
from frost.utils.logging import get_logger
from frost.utils.retry import retry_on_exception

logger = get_logger(__name__)


class AWSClient(ClusterProvider):
    """AWS client for EC2 region and EKS cluster operations.

    Each profile gets its own boto3 session; the SSO credential provider in
    botocore resolves the profile's role credentials from the SSO token cache.
    """

    def __init__(self, config_file: str | Path | None = None, discovery_region: str = "us-east-1"):
        """Initialize AWS client.

        Args:
            config_file: AWS config file holding the generated profiles
                (defaults to the standard location)
            discovery_region: Region used to list the available regions
        """
        self.config_file = str(Path(config_file).expanduser()) if config_file else None
        self.discovery_region = discovery_region
        self._sessions: dict[str, boto3.Session] = {}
        self._lock = threading.Lock()

        logger.debug("aws_client_initialized", config_file=self.config_file)

    def _client(self, service: str, profile: str, region: str) -> Any:
        # Sessions are not thread-safe; clients created from them are
        with self._lock:
            session = self._sessions.get(profile)
            if session is None:
                core_session = botocore.session.Session(profile=profile)
                if self.config_file:
                    core_session.set_config_variable("config_file", self.config_file)
                session = boto3.Session(botocore_session=core_session)
                self._sessions[profile] = session
            return session.client(service, region_name=region)

    def reset(self) -> None:
        """Drop cached sessions so the next call re-reads the profiles."""
        with self._lock:
            self._sessions.clear()

    @retry_on_exception(max_attempts=3)
    def _describe_regions(self, profile: str) -> list[dict[str, Any]]:
        ec2 = self._client("ec2", profile, self.discovery_region)
        return ec2.describe_regions()["Regions"]

    def list_regions(self, profile: str) -> list[str]:
        """List regions enabled for the profile's account.

        Raises:
            DiscoveryError: If regions cannot be listed
        """
        try:
            logger.debug("listing_regions", profile=profile)
            regions = sorted(region["RegionName"] for region in self._describe_regions(profile))
            logger.info("regions_listed", profile=profile, count=len(regions))
            return regions

        except (ClientError, BotoCoreError) as e:
            logger.error("list_regions_failed", profile=profile, error=str(e))
            raise DiscoveryError(f"Failed to list regions with profile {profile}: {e}") from e

    @retry_on_exception(max_attempts=3)
    def _list_cluster_names(self, profile: str, region: str) -> list[str]:
        eks = self._client("eks", profile, region)
        names: list[str] = []
        for page in eks.get_paginator("list_clusters").paginate():
            names.extend(page.get("clusters", []))
        return names

    def list_clusters(self, profile: str, region: str) -> list[str]:
        """List all EKS clusters in the region.

        Raises:
            DiscoveryError: If listing clusters fails
        """
        try:
            names = self._list_cluster_names(profile, region)
        except (ClientError, BotoCoreError) as e:
            logger.debug("list_clusters_failed", profile=profile, region=region, error=str(e))
            raise DiscoveryError(
                f"Failed to list EKS clusters for {profile} in {region}: {e}"
            ) from e

        for name in names:
            logger.info("cluster_found", profile=profile, region=region, cluster=name)
        return names

    @retry_on_exception(max_attempts=3)
    def _describe(self, profile: str, region: str, name: str) -> dict[str, Any]:
        eks = self._client("eks", profile, region)
        return eks.describe_cluster(name=name)["cluster"]

    def describe_cluster(self, profile: str, region: str, name: str) -> EKSCluster:
        """Get EKS cluster information.

        Raises:
            DiscoveryError: If cluster info cannot be retrieved
        """
        try:
            cluster = self._describe(profile, region, name)
        except (ClientError, BotoCoreError) as e:
            logger.warning(
                "describe_cluster_failed", profile=profile, region=region, cluster=name, error=str(e)
            )
            raise DiscoveryError(f"Failed to describe cluster {name} in {region}: {e}") from e

        try:
            return EKSCluster(
                name=cluster["name"],
                endpoint=cluster["endpoint"],
                certificate_authority_data=cluster["certificateAuthority"]["data"],
            )
        except KeyError as e:
            # Clusters still being created have no endpoint yet
            raise DiscoveryError(f"Cluster {name} in {region} is missing {e}") from e
