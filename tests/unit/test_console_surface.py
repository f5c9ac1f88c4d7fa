"""Tests for the terminal verification surface."""

from io import StringIO
from unittest.mock import patch

from rich.console import Console

from frost.adapters.console_surface import ConsoleVerificationSurface


def make_surface(launch_browser: bool = True) -> tuple[ConsoleVerificationSurface, StringIO]:
    output = StringIO()
    console = Console(file=output, width=200)
    return ConsoleVerificationSurface(console=console, launch_browser=launch_browser), output


def test_open_prints_url_and_launches_browser():
    """Test opening the verification URL."""
    surface, output = make_surface()

    with patch("frost.adapters.console_surface.click.launch") as mock_launch:
        surface.open("https://device.sso.eu-west-1.amazonaws.com/?user_code=ABCD-EFGH")

    mock_launch.assert_called_once_with(
        "https://device.sso.eu-west-1.amazonaws.com/?user_code=ABCD-EFGH"
    )
    assert "user_code=ABCD-EFGH" in output.getvalue()
    assert surface.is_open()


def test_open_without_browser():
    """Test that the browser launch can be disabled."""
    surface, _ = make_surface(launch_browser=False)

    with patch("frost.adapters.console_surface.click.launch") as mock_launch:
        surface.open("https://example.com")

    mock_launch.assert_not_called()
    assert surface.is_open()


def test_cancel_closes_surface():
    """Test that cancel marks the surface closed by the user."""
    surface, _ = make_surface(launch_browser=False)
    surface.open("https://example.com")

    surface.cancel()

    assert not surface.is_open()


def test_close_is_idempotent():
    """Test closing twice."""
    surface, _ = make_surface(launch_browser=False)
    surface.open("https://example.com")

    surface.close()
    surface.close()

    assert not surface.is_open()
