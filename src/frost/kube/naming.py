"""Collision-free, short names for discovered EKS clusters."""

from collections.abc import Callable

from frost.interfaces.sso_types import ClusterInfo

NamePattern = Callable[[ClusterInfo], str]

SEPARATOR = ":"


def _join(*parts: str) -> str:
    return SEPARATOR.join(parts)


def name_pattern(infos: list[ClusterInfo]) -> NamePattern:
    """Choose the shortest naming scheme that keeps every discovered cluster distinct.

    When plain cluster names are unique, region and role are appended only if
    they vary across the set. Otherwise the account, region and role are all
    included.

    Args:
        infos: Every cluster discovered in this cycle

    Returns:
        Function mapping a cluster to its kubeconfig entry name
    """
    cluster_names = [info.cluster.name for info in infos]
    unique_clusters = len(set(cluster_names)) == len(cluster_names)
    same_role = len({info.profile.role_name for info in infos}) <= 1
    same_region = len({info.region for info in infos}) <= 1

    if not unique_clusters:
        return lambda info: _join(
            info.cluster.name, info.profile.account_name, info.region, info.profile.role_name
        )
    if same_role and same_region:
        return lambda info: info.cluster.name
    if same_role:
        return lambda info: _join(info.cluster.name, info.region)
    if same_region:
        return lambda info: _join(info.cluster.name, info.profile.role_name)
    return lambda info: _join(info.cluster.name, info.region, info.profile.role_name)
