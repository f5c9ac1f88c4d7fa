"""AWS CLI profile generation from SSO accounts and roles."""

import re
import unicodedata

from frost.core.models import Profile, UserConfig
from frost.interfaces.sso_types import Account, Role

# Short aliases for AWS managed job-function permission sets
PREDEFINED_SHORT_NAMES: dict[str, str] = {
    "AdministratorAccess": "admin",
    "Billing": "billing",
    "DatabaseAdministrator": "dba",
    "DataScientist": "datasci",
    "NetworkAdministrator": "netadmin",
    "PowerUserAccess": "poweruser",
    "SecurityAudit": "secaudit",
    "SupportUser": "support",
    "SystemAdministrator": "sysadmin",
    "ViewOnlyAccess": "viewonly",
}

SHORT_NAME_TAG = re.compile(r"#([-_a-zA-Z0-9]+)")
REGION_TAG = re.compile(r"@([a-z]+-[a-z]+-[0-9]+)")


def slugify(name: str) -> str:
    """Lower-case ``name`` and collapse everything but letters and digits to hyphens.

    Accented letters are reduced to their ASCII base letter first.
    """
    s = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    s = re.sub(r"[^a-z0-9]+", "-", s.lower())
    return s.strip("-")


def short_account_name(account_name: str) -> str:
    """Use an explicit ``#slug`` tag when present, otherwise slugify the name."""
    match = SHORT_NAME_TAG.search(account_name)
    return match.group(1) if match else slugify(account_name)


def preferred_account_region(account_name: str) -> str | None:
    """Region from an ``@region`` tag in the account name, if any."""
    match = REGION_TAG.search(account_name)
    return match.group(1) if match else None


def short_permission_set_name(role_name: str) -> str:
    """Alias well-known permission sets; other names pass through unchanged."""
    return PREDEFINED_SHORT_NAMES.get(role_name, role_name)


def generate_profiles(
    user_config: UserConfig, accounts: list[Account], roles: list[Role]
) -> list[Profile]:
    """Build one profile per role the user can assume.

    Profile names are ``<account short name>-<role short name>``. Two accounts
    with the same short name and role yield the same profile name; callers
    writing the profiles decide which one wins.

    Args:
        user_config: SSO portal configuration
        accounts: Accounts visible to the user
        roles: Roles across those accounts

    Returns:
        Profiles in the order of ``roles``
    """
    accounts_by_id = {account.account_id: account for account in accounts}

    profiles = []
    for role in roles:
        account = accounts_by_id.get(role.account_id)
        if account is None:
            continue

        account_short_name = short_account_name(account.account_name)
        role_short_name = short_permission_set_name(role.role_name)

        profiles.append(
            Profile(
                name=f"{account_short_name}-{role_short_name}",
                sso_start_url=user_config.start_url,
                sso_region=user_config.region,
                sso_account_id=role.account_id,
                sso_role_name=role.role_name,
                region=preferred_account_region(account.account_name) or user_config.region,
                account_name=account_short_name,
                role_name=role_short_name,
            )
        )

    return profiles
