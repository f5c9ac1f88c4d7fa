"""Writers for the AWS CLI config file and SSO token cache."""

import configparser
import hashlib
import io
import json
from pathlib import Path

from frost.core.models import Profile, TokenState, UserConfig
from frost.utils.files import atomic_write
from frost.utils.logging import get_logger

logger = get_logger(__name__)


def render_aws_config(profiles: list[Profile]) -> str:
    """Render profiles as AWS CLI config sections.

    A later profile with the same name replaces an earlier one.
    """
    parser = configparser.ConfigParser(interpolation=None)

    for profile in profiles:
        section = f"profile {profile.name}"
        if parser.has_section(section):
            logger.warning("duplicate_profile_name", profile=profile.name)
            parser.remove_section(section)
        parser[section] = profile.contents()

    buffer = io.StringIO()
    parser.write(buffer)
    return buffer.getvalue()


def write_aws_config(profiles: list[Profile], path: str | Path) -> Path:
    """Rewrite the AWS CLI config file with the generated profiles.

    Args:
        profiles: Profiles to write
        path: AWS config file location

    Returns:
        Path of the written file

    Raises:
        PersistenceError: If the file cannot be written
    """
    written = atomic_write(path, render_aws_config(profiles))
    logger.info("aws_config_written", path=str(written), profiles=len(profiles))
    return written


def sso_cache_path(start_url: str, cache_dir: str | Path) -> Path:
    """Cache file the AWS CLI looks up for a start URL."""
    digest = hashlib.sha1(start_url.encode("utf-8")).hexdigest()
    return Path(cache_dir).expanduser() / f"{digest}.json"


def write_sso_cache(user_config: UserConfig, token: TokenState, cache_dir: str | Path) -> Path:
    """Write the access token where AWS CLI/SDK SSO credential providers read it.

    Raises:
        PersistenceError: If the file cannot be written
    """
    contents = {
        "startUrl": user_config.start_url,
        "region": user_config.region,
        "accessToken": token.access_token,
        "expiresAt": token.expires_at_iso(),
    }
    path = sso_cache_path(user_config.start_url, cache_dir)
    atomic_write(path, json.dumps(contents), mode=0o600)
    logger.info("sso_cache_written", path=str(path))
    return path
