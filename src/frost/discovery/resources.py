"""Discovery of SSO accounts, roles and EKS clusters.

Lookups fan out over a thread pool. A failing unit (one account, or one
profile in one region) is logged and contributes nothing; it never aborts
the rest of the discovery.
"""

from concurrent.futures import ThreadPoolExecutor

from frost.core.exceptions import DiscoveryError
from frost.core.models import Profile
from frost.interfaces.account_directory import AccountDirectory
from frost.interfaces.cluster_provider import ClusterProvider
from frost.interfaces.sso_types import Account, ClusterInfo, Role
from frost.utils.logging import get_logger

logger = get_logger(__name__)


class ResourceDiscovery:
    """Collects the inputs of profile and kubeconfig generation."""

    def __init__(
        self,
        directory: AccountDirectory,
        clusters: ClusterProvider,
        max_workers: int = 16,
    ):
        """Initialize discovery.

        Args:
            directory: SSO account and role listing
            clusters: Region and EKS lookups
            max_workers: Maximum concurrent API calls
        """
        self.directory = directory
        self.clusters = clusters
        self.max_workers = max_workers

    def list_accounts(self, access_token: str) -> list[Account]:
        """List all accounts; failure here fails the cycle.

        Raises:
            DiscoveryError: If the account listing fails
        """
        return self.directory.list_accounts(access_token)

    def list_roles(self, access_token: str, accounts: list[Account]) -> list[Role]:
        """List roles of every account in parallel."""

        def roles_for(account: Account) -> list[Role]:
            try:
                return self.directory.list_account_roles(access_token, account.account_id)
            except DiscoveryError as e:
                logger.warning("account_roles_skipped", account_id=account.account_id, error=str(e))
                return []

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            results = list(pool.map(roles_for, accounts))

        roles = [role for account_roles in results for role in account_roles]
        logger.info("roles_listed", accounts=len(accounts), roles=len(roles))
        return roles

    def discover_clusters(self, profiles: list[Profile]) -> list[ClusterInfo]:
        """Find every EKS cluster reachable through ``profiles``.

        Regions are listed once, through the first profile allowed to; every
        (profile, region) pair is then searched independently.

        Args:
            profiles: Generated profiles, already written to the AWS config file

        Returns:
            Complete list of discovered clusters, sorted by profile, region and name
        """
        if not profiles:
            return []

        self.clusters.reset()
        regions = self._list_regions(profiles)
        if not regions:
            return []

        units = [(profile, region) for region in regions for profile in profiles]
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            results = list(pool.map(lambda unit: self._clusters_in(*unit), units))

        infos = [info for unit_infos in results for info in unit_infos]
        infos.sort(key=lambda info: (info.profile.name, info.region, info.cluster.name))

        logger.info(
            "clusters_discovered",
            profiles=len(profiles),
            regions=len(regions),
            clusters=len(infos),
        )
        return infos

    def _list_regions(self, profiles: list[Profile]) -> list[str]:
        # Not every role may call ec2:DescribeRegions
        for profile in profiles:
            try:
                return self.clusters.list_regions(profile.name)
            except DiscoveryError as e:
                logger.warning("regions_unavailable", profile=profile.name, error=str(e))
        return []

    def _clusters_in(self, profile: Profile, region: str) -> list[ClusterInfo]:
        try:
            names = self.clusters.list_clusters(profile.name, region)
            return [
                ClusterInfo(
                    cluster=self.clusters.describe_cluster(profile.name, region, name),
                    profile=profile,
                    region=region,
                )
                for name in names
            ]
        except DiscoveryError as e:
            logger.debug(
                "cluster_discovery_skipped", profile=profile.name, region=region, error=str(e)
            )
            return []
