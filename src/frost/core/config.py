"""Configuration management for Frost."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from frost.core.exceptions import ConfigurationError

DEFAULT_CONFIG_PATH = "~/.frost/config.yaml"


class PathsConfig(BaseModel):
    """Locations of the files Frost reads and writes."""

    state_file: str = "~/.frost/state.json"
    aws_config_file: str = "~/.aws/config"
    sso_cache_dir: str = "~/.aws/sso/cache"
    kubeconfig_file: str = "~/.kube/config"
    # Directory holding the bundled aws-iam-authenticator binary
    authenticator_dir: str = "~/.frost/bin"


class SchedulerConfig(BaseModel):
    """Refresh scheduler configuration."""

    minimum_delay_seconds: float = Field(default=0.5, gt=0)
    error_backoff_seconds: float = Field(default=5.0, gt=0)
    max_error_backoff_seconds: float = Field(default=300.0, gt=0)


class SSOConfig(BaseModel):
    """SSO client configuration."""

    client_name_prefix: str = "Frost"
    # Region used for the EC2 region listing during discovery
    discovery_region: str = "us-east-1"


class DiscoveryConfig(BaseModel):
    """Resource discovery configuration."""

    max_workers: int = Field(default=16, ge=1, le=64)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "console"
    output: str = "stderr"


class FrostConfig(BaseModel):
    """Main Frost configuration."""

    paths: PathsConfig = Field(default_factory=PathsConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    sso: SSOConfig = Field(default_factory=SSOConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, path: str | Path) -> "FrostConfig":
        """Load configuration from YAML file.

        Args:
            path: Path to configuration file

        Returns:
            FrostConfig instance

        Raises:
            ConfigurationError: If file cannot be loaded or parsed
        """
        config_path = Path(path).expanduser()

        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with config_path.open() as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

        try:
            return cls(**(data or {}))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @classmethod
    def load(cls, path: str | Path = DEFAULT_CONFIG_PATH) -> "FrostConfig":
        """Load configuration, falling back to defaults when the file does not exist."""
        if not Path(path).expanduser().exists():
            return cls()
        return cls.from_file(path)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary.

        Returns:
            Dictionary representation
        """
        return self.model_dump()
