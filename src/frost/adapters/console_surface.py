"""Terminal implementation of the VerificationSurface interface."""

import threading

import click
from rich.console import Console

from frost.interfaces.verification_surface import VerificationSurface
from frost.utils.logging import get_logger

logger = get_logger(__name__)


class ConsoleVerificationSurface(VerificationSurface):
    """Prints the verification URL and opens it in the default browser.

    A terminal cannot observe the browser tab, so the surface only counts as
    closed by the user after ``cancel()`` is called (for example from a
    Ctrl-C handler).
    """

    def __init__(self, console: Console | None = None, launch_browser: bool = True):
        """Initialize surface.

        Args:
            console: Rich console to print to
            launch_browser: Whether to open the URL in the default browser
        """
        self.console = console or Console(stderr=True)
        self.launch_browser = launch_browser
        self._open = threading.Event()

    def open(self, url: str) -> None:
        """Show the verification URL to the user."""
        self._open.set()
        self.console.print("\n[bold]Approve this device to refresh AWS credentials:[/bold]")
        self.console.print(f"  [cyan]{url}[/cyan]\n")
        if self.launch_browser:
            click.launch(url)
        logger.info("verification_surface_opened")

    def is_open(self) -> bool:
        """Whether the user has not cancelled the verification."""
        return self._open.is_set()

    def cancel(self) -> None:
        """Record that the user abandoned the verification."""
        if self._open.is_set():
            logger.warning("verification_cancelled_by_user")
        self._open.clear()

    def close(self) -> None:
        """Close the surface."""
        self._open.clear()
