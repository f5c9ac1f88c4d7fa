"""Main CLI entry point for Frost."""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING

import click
from rich.console import Console

from frost import __version__
from frost.core.config import DEFAULT_CONFIG_PATH
from frost.core.exceptions import ConfigurationError, FrostError

if TYPE_CHECKING:
    from frost.adapters.console_surface import ConsoleVerificationSurface
    from frost.adapters.json_store import JsonFileConfigStore
    from frost.auth.acquirer import TokenAcquirer
    from frost.auth.registrar import ClientRegistrar
    from frost.auth.scheduler import RefreshScheduler
    from frost.clients.aws_client import AWSClient
    from frost.clients.sso_client import SSOClient
    from frost.core.config import FrostConfig
    from frost.core.models import UserConfig
    from frost.discovery.resources import ResourceDiscovery
    from frost.kube.kubeconfig import KubeconfigManager
    from frost.sync.artifact_sync import ArtifactSync

console = Console()


class FrostContext:
    """Shared context for CLI commands with lazy initialization."""

    def __init__(self, config_path: str):
        """Initialize context with config path.

        Args:
            config_path: Path to configuration file
        """
        self.config_path = config_path
        self.active_surface: ConsoleVerificationSurface | None = None
        self._config: FrostConfig | None = None
        self._store: JsonFileConfigStore | None = None
        self._registrar: ClientRegistrar | None = None
        self._acquirer: TokenAcquirer | None = None
        self._aws_client: AWSClient | None = None
        self._kubeconfig_manager: KubeconfigManager | None = None
        self._artifact_sync: ArtifactSync | None = None
        self._scheduler: RefreshScheduler | None = None

    @property
    def config(self) -> FrostConfig:
        """Get or load config lazily."""
        if self._config is None:
            from frost.core.config import FrostConfig

            self._config = FrostConfig.load(self.config_path)
        return self._config

    @property
    def store(self) -> JsonFileConfigStore:
        """Get or create the state store lazily."""
        if self._store is None:
            from frost.adapters.json_store import JsonFileConfigStore

            self._store = JsonFileConfigStore(self.config.paths.state_file)
        return self._store

    @staticmethod
    def sso_client(user_config: UserConfig) -> SSOClient:
        """Build the SSO client for a portal's region."""
        from frost.clients.sso_client import SSOClient

        return SSOClient(region=user_config.region)

    def new_surface(self) -> ConsoleVerificationSurface:
        """Build a verification surface and remember it so it can be cancelled."""
        from frost.adapters.console_surface import ConsoleVerificationSurface

        self.active_surface = ConsoleVerificationSurface(console=console)
        return self.active_surface

    @property
    def registrar(self) -> ClientRegistrar:
        """Get or create client registrar lazily."""
        if self._registrar is None:
            from frost.auth.registrar import ClientRegistrar

            self._registrar = ClientRegistrar(
                store=self.store,
                provider_factory=self.sso_client,
                client_name_prefix=self.config.sso.client_name_prefix,
            )
        return self._registrar

    @property
    def acquirer(self) -> TokenAcquirer:
        """Get or create token acquirer lazily."""
        if self._acquirer is None:
            from frost.auth.acquirer import TokenAcquirer

            self._acquirer = TokenAcquirer(
                store=self.store,
                provider_factory=self.sso_client,
                surface_factory=self.new_surface,
            )
        return self._acquirer

    @property
    def aws_client(self) -> AWSClient:
        """Get or create the EKS discovery client lazily."""
        if self._aws_client is None:
            from frost.clients.aws_client import AWSClient

            self._aws_client = AWSClient(
                config_file=self.config.paths.aws_config_file,
                discovery_region=self.config.sso.discovery_region,
            )
        return self._aws_client

    def new_discovery(self, user_config: UserConfig) -> ResourceDiscovery:
        """Build resource discovery for the portal being synced."""
        from frost.discovery.resources import ResourceDiscovery

        return ResourceDiscovery(
            directory=self.sso_client(user_config),
            clusters=self.aws_client,
            max_workers=self.config.discovery.max_workers,
        )

    @property
    def kubeconfig_manager(self) -> KubeconfigManager:
        """Get or create kubeconfig manager lazily."""
        if self._kubeconfig_manager is None:
            from frost.kube.kubeconfig import KubeconfigManager, resolve_authenticator_path

            self._kubeconfig_manager = KubeconfigManager(
                kubeconfig_path=self.config.paths.kubeconfig_file,
                authenticator_path=resolve_authenticator_path(self.config.paths.authenticator_dir),
            )
        return self._kubeconfig_manager

    @property
    def artifact_sync(self) -> ArtifactSync:
        """Get or create artifact sync lazily."""
        if self._artifact_sync is None:
            from frost.sync.artifact_sync import ArtifactSync

            self._artifact_sync = ArtifactSync(
                store=self.store,
                discovery_factory=self.new_discovery,
                kubeconfig=self.kubeconfig_manager,
                aws_config_path=self.config.paths.aws_config_file,
            )
        return self._artifact_sync

    @property
    def scheduler(self) -> RefreshScheduler:
        """Get or create refresh scheduler lazily."""
        if self._scheduler is None:
            from frost.auth.scheduler import RefreshScheduler

            scheduler_config = self.config.scheduler
            self._scheduler = RefreshScheduler(
                store=self.store,
                registrar=self.registrar,
                acquirer=self.acquirer,
                artifact_sync=self.artifact_sync,
                sso_cache_dir=self.config.paths.sso_cache_dir,
                minimum_delay=scheduler_config.minimum_delay_seconds,
                error_backoff=scheduler_config.error_backoff_seconds,
                max_error_backoff=scheduler_config.max_error_backoff_seconds,
            )
        return self._scheduler


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    type=click.Path(dir_okay=False),
    default=DEFAULT_CONFIG_PATH,
    help="Path to configuration file",
)
@click.pass_context
def cli(ctx: click.Context, config: str) -> None:
    """Frost - keep AWS SSO credentials, profiles and kubeconfig fresh."""
    from frost.utils.logging import setup_logging

    frost_ctx = FrostContext(config_path=config)
    try:
        logging_config = frost_ctx.config.logging
    except ConfigurationError as e:
        console.print(f"[red]Error: {e}[/red]")
        ctx.exit(1)

    setup_logging(
        level=logging_config.level,
        format=logging_config.format,
        output=logging_config.output,
    )
    ctx.obj = frost_ctx


@cli.command()
@click.option("--start-url", required=True, help="AWS access portal URL")
@click.option("--region", required=True, help="Region of the IAM Identity Center instance")
@click.pass_context
def configure(ctx: click.Context, start_url: str, region: str) -> None:
    """Set the SSO portal to refresh credentials for."""
    from pydantic import ValidationError

    from frost.core.models import UserConfig

    frost_ctx: FrostContext = ctx.obj

    try:
        user_config = UserConfig(start_url=start_url, region=region)
    except ValidationError as e:
        raise click.BadParameter(str(e), param_hint="--start-url") from e

    try:
        # The next `frost run` or `frost refresh` picks the change up
        frost_ctx.scheduler.reconfigure(user_config, refresh=False)
    except FrostError as e:
        console.print(f"[red]Error: {e}[/red]")
        ctx.exit(1)

    console.print("[green]✓ SSO portal configured[/green]")
    console.print(f"  Start URL: {user_config.start_url}")
    console.print(f"  Region: {user_config.region}")


@cli.command()
@click.pass_context
def refresh(ctx: click.Context) -> None:
    """Refresh credentials and regenerate profiles now."""
    from frost.auth.scheduler import LAST_ERROR_KEY

    frost_ctx: FrostContext = ctx.obj
    scheduler = frost_ctx.scheduler

    if scheduler.user_config() is None:
        console.print("[red]No SSO portal configured. Run `frost configure` first.[/red]")
        ctx.exit(1)

    console.print("[bold blue]Refreshing credentials...[/bold blue]")
    outcome: list[bool] = []
    worker = threading.Thread(target=lambda: outcome.append(scheduler.refresh_now()), daemon=True)
    worker.start()
    try:
        try:
            _wait_for(worker)
        except KeyboardInterrupt:
            # The cycle ends on its next poll and records the cancellation
            console.print("\n[yellow]Cancelling login...[/yellow]")
            _cancel_verification(frost_ctx)
            _wait_for(worker)
    finally:
        scheduler.cancel()

    if not (outcome and outcome[0]):
        error = frost_ctx.store.get(LAST_ERROR_KEY) or "refresh did not complete"
        console.print(f"[red]✗ Refresh failed: {error}[/red]")
        ctx.exit(1)

    console.print("[green]✓ Credentials refreshed[/green]")
    _print_clusters(frost_ctx)


@cli.command()
@click.option(
    "--poll-interval",
    type=float,
    default=1.0,
    show_default=True,
    help="Seconds between checks for Ctrl-C",
)
@click.pass_context
def run(ctx: click.Context, poll_interval: float) -> None:
    """Keep credentials fresh until interrupted."""
    frost_ctx: FrostContext = ctx.obj
    scheduler = frost_ctx.scheduler

    if scheduler.user_config() is None:
        console.print("[red]No SSO portal configured. Run `frost configure` first.[/red]")
        ctx.exit(1)

    delay = scheduler.schedule_next()
    console.print(f"[bold blue]Frost running[/bold blue] (first refresh in {delay:.0f}s)")
    console.print("Press Ctrl-C to stop.\n")

    try:
        while True:
            time.sleep(poll_interval)
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopping...[/yellow]")
    finally:
        _cancel_verification(frost_ctx)
        scheduler.stop()


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the refresh state."""
    from rich.table import Table

    from frost.auth.acquirer import EXPIRES_AT_KEY
    from frost.auth.scheduler import IS_WORKING_KEY, LAST_ERROR_KEY

    frost_ctx: FrostContext = ctx.obj
    store = frost_ctx.store
    scheduler = frost_ctx.scheduler
    user_config = scheduler.user_config()

    table = Table(title="Frost Status", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    if user_config is None:
        table.add_row("SSO portal", "[yellow]not configured[/yellow]")
    else:
        table.add_row("SSO portal", user_config.start_url)
        table.add_row("SSO region", user_config.region)

    table.add_row("Token expires at", store.get(EXPIRES_AT_KEY) or "-")
    if user_config is not None:
        table.add_row("Next refresh in", f"{scheduler.compute_delay():.0f}s")
    table.add_row("Working", "yes" if store.get(IS_WORKING_KEY) else "no")

    last_error = store.get(LAST_ERROR_KEY)
    table.add_row("Last error", f"[red]{last_error}[/red]" if last_error else "-")

    console.print(table)
    _print_clusters(frost_ctx)


def _wait_for(worker: threading.Thread, poll_interval: float = 0.2) -> None:
    # Joining with a timeout keeps the main thread responsive to Ctrl-C
    while worker.is_alive():
        worker.join(poll_interval)


def _cancel_verification(frost_ctx: FrostContext) -> None:
    if frost_ctx.active_surface is not None:
        frost_ctx.active_surface.cancel()


def _print_clusters(frost_ctx: FrostContext) -> None:
    from rich.table import Table

    from frost.sync.artifact_sync import CLUSTERS_KEY

    clusters = frost_ctx.store.get(CLUSTERS_KEY) or []
    if not clusters:
        console.print("[yellow]No EKS clusters discovered[/yellow]")
        return

    table = Table(title=f"EKS Clusters ({len(clusters)} total)")
    table.add_column("Cluster", style="cyan")
    table.add_column("Profile", style="magenta")
    table.add_column("Region", style="blue")
    for cluster in clusters:
        table.add_row(cluster["name"], cluster["profile"], cluster["region"])
    console.print(table)


if __name__ == "__main__":
    cli()
