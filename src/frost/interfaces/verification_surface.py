"""Verification surface interface for showing the device authorization URL."""

from abc import ABC, abstractmethod


class VerificationSurface(ABC):
    """Where the user completes the browser half of the device flow.

    The surface may be closed by the user at any time; the token acquirer
    treats that as cancellation.
    """

    @abstractmethod
    def open(self, url: str) -> None:
        """Show the verification URL to the user."""

    @abstractmethod
    def is_open(self) -> bool:
        """Whether the user still has the surface open."""

    @abstractmethod
    def close(self) -> None:
        """Close the surface; closing an already closed surface is a no-op."""
