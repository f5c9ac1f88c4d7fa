"""Regeneration of AWS profiles and kubeconfig entries from a fresh token."""

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from frost.core.models import Profile, TokenState, UserConfig
from frost.discovery.resources import ResourceDiscovery
from frost.interfaces.config_store import ConfigStore
from frost.interfaces.sso_types import ClusterInfo
from frost.kube.kubeconfig import KubeconfigManager
from frost.profiles.generator import generate_profiles
from frost.utils.logging import get_logger
from frost.writers.aws_config import write_aws_config

logger = get_logger(__name__)

CLUSTERS_KEY = "clusters"


@dataclass
class SyncResult:
    """What one artifact sync produced."""

    profiles: list[Profile] = field(default_factory=list)
    clusters: list[ClusterInfo] = field(default_factory=list)


class ArtifactSync:
    """Writes the AWS config and merges the kubeconfig for the current token."""

    def __init__(
        self,
        store: ConfigStore,
        discovery_factory: Callable[[UserConfig], ResourceDiscovery],
        kubeconfig: KubeconfigManager,
        aws_config_path: str | Path,
    ):
        """Initialize artifact sync.

        Args:
            store: Persisted application config
            discovery_factory: Builds discovery for the SSO portal being synced
            kubeconfig: Kubeconfig file manager
            aws_config_path: AWS CLI config file location
        """
        self.store = store
        self.discovery_factory = discovery_factory
        self.kubeconfig = kubeconfig
        self.aws_config_path = aws_config_path

    def sync(self, user_config: UserConfig, token: TokenState) -> SyncResult:
        """Regenerate profiles and kubeconfig entries.

        Raises:
            DiscoveryError: If the account listing fails
            PersistenceError: If a file cannot be written
        """
        logger.info("refreshing_profiles")
        discovery = self.discovery_factory(user_config)

        accounts = discovery.list_accounts(token.access_token)
        roles = discovery.list_roles(token.access_token, accounts)
        profiles = generate_profiles(user_config, accounts, roles)
        write_aws_config(profiles, self.aws_config_path)

        # Discovery resolves credentials through the profiles written above
        clusters = discovery.discover_clusters(profiles)
        self.store.set(
            CLUSTERS_KEY,
            [
                {"name": info.cluster.name, "profile": info.profile.name, "region": info.region}
                for info in clusters
            ],
        )
        if clusters:
            self.kubeconfig.merge_clusters(clusters)

        return SyncResult(profiles=profiles, clusters=clusters)
