"""Kubeconfig generation and non-destructive merge for discovered EKS clusters."""

import copy
import os
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from frost.core.exceptions import PersistenceError
from frost.interfaces.sso_types import ClusterInfo
from frost.kube.naming import name_pattern
from frost.utils.files import atomic_write
from frost.utils.logging import get_logger

logger = get_logger(__name__)

AUTHENTICATOR_ENV_VAR = "AWS_IAM_AUTHENTICATOR_PATH"
EXEC_API_VERSION = "client.authentication.k8s.io/v1beta1"
ENTRY_KINDS = ("clusters", "users", "contexts")


def authenticator_basename(platform: str = sys.platform) -> str:
    """File name of the aws-iam-authenticator binary on ``platform``."""
    return "aws-iam-authenticator.exe" if platform == "win32" else "aws-iam-authenticator"


def resolve_authenticator_path(
    default_dir: str | Path,
    environ: Mapping[str, str] | None = None,
    platform: str = sys.platform,
) -> str:
    """Absolute path of the IAM authenticator referenced by generated users.

    Args:
        default_dir: Directory holding the bundled binary
        environ: Environment to read the override from (defaults to ``os.environ``)
        platform: Platform identifier used to pick the binary name

    Returns:
        The ``AWS_IAM_AUTHENTICATOR_PATH`` override, or the bundled binary path
    """
    env = os.environ if environ is None else environ
    override = env.get(AUTHENTICATOR_ENV_VAR)
    if override:
        return override
    return str((Path(default_dir).expanduser() / authenticator_basename(platform)).absolute())


def empty_kubeconfig() -> dict[str, Any]:
    """Kubeconfig document with no entries."""
    return {
        "apiVersion": "v1",
        "kind": "Config",
        "preferences": {},
        "clusters": [],
        "users": [],
        "contexts": [],
        "current-context": "",
    }


def build_entries(info: ClusterInfo, name: str, authenticator_path: str) -> dict[str, dict]:
    """Cluster, user and context entries for one discovered cluster, all named ``name``."""
    return {
        "clusters": {
            "name": name,
            "cluster": {
                "server": info.cluster.endpoint,
                "certificate-authority-data": info.cluster.certificate_authority_data,
            },
        },
        "users": {
            "name": name,
            "user": {
                "exec": {
                    "apiVersion": EXEC_API_VERSION,
                    "command": authenticator_path,
                    "args": ["token", "-i", info.cluster.name],
                    "env": [{"name": "AWS_PROFILE", "value": info.profile.name}],
                    "interactiveMode": "Never",
                },
            },
        },
        "contexts": {
            "name": name,
            "context": {"cluster": name, "user": name},
        },
    }


def merge_clusters(
    existing: Mapping[str, Any] | None,
    infos: list[ClusterInfo],
    authenticator_path: str,
) -> dict[str, Any]:
    """Merge entries for ``infos`` into a kubeconfig snapshot.

    For clusters, users and contexts, an existing entry sharing a generated
    name is replaced; every other entry is kept as it was. The snapshot
    passed in is not modified.

    Args:
        existing: Loaded kubeconfig document (None for no file)
        infos: Every cluster discovered in this cycle
        authenticator_path: Absolute path of the IAM authenticator binary

    Returns:
        Updated kubeconfig document
    """
    merged = empty_kubeconfig()
    if existing:
        merged.update(copy.deepcopy(dict(existing)))
    for kind in ENTRY_KINDS:
        if not merged.get(kind):
            merged[kind] = []

    get_name = name_pattern(infos)
    for info in infos:
        name = get_name(info)
        for kind, entry in build_entries(info, name, authenticator_path).items():
            merged[kind] = [e for e in merged[kind] if e.get("name") != name]
            merged[kind].append(entry)

    return merged


class KubeconfigManager:
    """Reads, merges and writes the user's kubeconfig file."""

    def __init__(self, kubeconfig_path: str | Path, authenticator_path: str):
        """Initialize kubeconfig manager.

        Args:
            kubeconfig_path: Kubeconfig file location
            authenticator_path: Absolute path of the IAM authenticator binary
        """
        self.kubeconfig_path = Path(kubeconfig_path).expanduser()
        self.authenticator_path = authenticator_path

    def load(self) -> dict[str, Any]:
        """Load the current kubeconfig; a missing or empty file loads as empty.

        Raises:
            PersistenceError: If the file exists but cannot be read or parsed,
                so a broken file is never overwritten with generated entries only
        """
        logger.info("reading_kubeconfig", path=str(self.kubeconfig_path))
        try:
            with self.kubeconfig_path.open() as f:
                data = yaml.safe_load(f)
        except FileNotFoundError:
            logger.debug("kubeconfig_not_found", path=str(self.kubeconfig_path))
            return empty_kubeconfig()
        except (OSError, yaml.YAMLError) as e:
            raise PersistenceError(f"Failed to read {self.kubeconfig_path}: {e}") from e

        if data is None:
            return empty_kubeconfig()
        if not isinstance(data, dict):
            raise PersistenceError(f"{self.kubeconfig_path} is not a kubeconfig document")
        return data

    def save(self, config: Mapping[str, Any]) -> None:
        """Write the kubeconfig atomically.

        Raises:
            PersistenceError: If the file cannot be written
        """
        contents = yaml.safe_dump(dict(config), default_flow_style=False, sort_keys=False)
        atomic_write(self.kubeconfig_path, contents, mode=0o600)

    def merge_clusters(self, infos: list[ClusterInfo]) -> dict[str, Any]:
        """Merge discovered clusters into the kubeconfig file.

        Args:
            infos: Every cluster discovered in this cycle

        Returns:
            The document that was written
        """
        merged = merge_clusters(self.load(), infos, self.authenticator_path)
        self.save(merged)
        logger.info(
            "kubeconfig_written",
            path=str(self.kubeconfig_path),
            clusters=len(infos),
        )
        return merged
