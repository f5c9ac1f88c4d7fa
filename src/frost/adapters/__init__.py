"""Adapter implementations for local storage and user interaction."""

from frost.adapters.console_surface import ConsoleVerificationSurface
from frost.adapters.json_store import JsonFileConfigStore

__all__ = [
    "ConsoleVerificationSurface",
    "JsonFileConfigStore",
]
