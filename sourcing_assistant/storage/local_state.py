"""File-backed key/value store for persisted local state."""

import json
import logging
import re
from pathlib import Path
from typing import Any, Optional

from sourcing_assistant.config import settings
from sourcing_assistant.errors import PersistenceError

logger = logging.getLogger(__name__)


class LocalStateStore:
    """
    Persist JSON documents under namespaced keys.

    Each key maps to one ``<key>.json`` file in the state directory. Reads
    raise PersistenceError on unreadable or corrupt files; callers decide
    whether to reset.
    """

    def __init__(self, base_path: Optional[str] = None):
        """
        Initialize the state store.

        Args:
            base_path: Directory for state files (defaults to config)
        """
        self.base_path = Path(base_path or settings.state_dir)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _get_path(self, key: str) -> Path:
        safe_key = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self.base_path / f"{safe_key}.json"

    def read(self, key: str) -> Any:
        """
        Load the document stored under a key.

        Returns:
            Decoded JSON value, or None if nothing is stored

        Raises:
            PersistenceError: If the file cannot be read or decoded
        """
        path = self._get_path(key)
        if not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Failed to load state for {key}: {e}") from e

    def write(self, key: str, value: Any) -> None:
        """
        Replace the document stored under a key.

        Raises:
            PersistenceError: If the file cannot be written
        """
        path = self._get_path(key)
        tmp_path = path.with_suffix(".json.tmp")

        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(value, f, indent=2, default=str)
            tmp_path.replace(path)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"Failed to save state for {key}: {e}") from e

    def remove(self, key: str) -> None:
        """Delete the document stored under a key, if any."""
        path = self._get_path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to remove state for {key}: {e}")
