"""JSON file implementation of the ConfigStore interface."""

import json
import threading
from pathlib import Path
from typing import Any

from frost.core.exceptions import PersistenceError
from frost.interfaces.config_store import ConfigStore
from frost.utils.files import atomic_write
from frost.utils.logging import get_logger

logger = get_logger(__name__)


class JsonFileConfigStore(ConfigStore):
    """Application state kept in a single JSON document.

    The whole document is rewritten atomically on every change, so a crash
    never leaves a half-written file behind.
    """

    def __init__(self, path: str | Path):
        """Initialize store.

        Args:
            path: Location of the JSON document
        """
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()
        self._data = self._load()
        logger.debug("json_store_initialized", path=str(self.path), keys=sorted(self._data))

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Failed to read state file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise PersistenceError(f"State file {self.path} does not hold a JSON object")
        return data

    def _flush(self, data: dict[str, Any]) -> None:
        atomic_write(self.path, json.dumps(data, indent=2, sort_keys=True), mode=0o600)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value, or ``default`` when the key is not set."""
        with self._lock:
            return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a value and persist the document.

        The in-memory document only changes once the write has succeeded.
        """
        with self._lock:
            data = {**self._data, key: value}
            self._flush(data)
            self._data = data

    def delete(self, key: str) -> None:
        """Delete a key and persist the document."""
        with self._lock:
            if key not in self._data:
                return
            data = {k: v for k, v in self._data.items() if k != key}
            self._flush(data)
            self._data = data
