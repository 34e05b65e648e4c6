"""
Key/value JSON file store used for annotations and categories.
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Union

from .errors import PersistenceError

logger = logging.getLogger(__name__)


class JsonFileStore:
    """Stores one JSON document per key inside a directory."""

    def __init__(self, base_dir: Union[str, Path]):
        self.base_dir = Path(base_dir)

    def path_for(self, key: str) -> Path:
        """
        Get the file path backing a key.

        Args:
            key: Storage key (used verbatim as the file stem)

        Returns:
            Path to the JSON file
        """
        return self.base_dir / f"{key}.json"

    def read(self, key: str, default: Any = None) -> Any:
        """
        Read a stored value.

        Args:
            key: Storage key
            default: Value returned when nothing is stored or it is unreadable

        Returns:
            Decoded JSON value or default
        """
        path = self.path_for(key)
        if not path.exists():
            return default

        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.error("Failed to read %s: %s", path, e)
            return default

    def write(self, key: str, value: Any) -> None:
        """
        Write a value, replacing the previous file atomically.

        Args:
            key: Storage key
            value: JSON-serializable value

        Raises:
            PersistenceError: If the file could not be written
        """
        path = self.path_for(key)
        tmp_path = path.with_suffix(".json.tmp")

        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(value, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"Failed to write {path}: {e}") from e

    def delete(self, key: str) -> bool:
        """
        Delete the value stored under a key.

        Returns:
            True if deletion was successful or nothing was stored
        """
        path = self.path_for(key)
        if not path.exists():
            return True

        try:
            path.unlink()
            return True
        except OSError as e:
            logger.error("Failed to delete %s: %s", path, e)
            return False
