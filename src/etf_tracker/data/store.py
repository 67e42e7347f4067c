"""
Key-value state persistence.

The ledger and the refresh gate read and write their state through a
StateStore so the storage medium can be swapped (in-memory for tests, a JSON
file for the CLI). Values must be JSON-serializable.
"""

import copy
import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

from etf_tracker.data.loaders import DataLoadError

logger = logging.getLogger(__name__)


# Keys used by the engine
HOLDINGS_KEY = "holdings"
TRANSACTIONS_KEY = "transactions"
LAST_REFRESH_KEY = "last_refresh"
FUNDS_KEY = "funds"


class StateStore(ABC):
    """Abstract key-value store for persisted engine state."""

    @abstractmethod
    def get(self, key: str, default: Optional[Any] = None) -> Any:
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass

    def update(self, values: dict[str, Any]) -> None:
        """Write several keys at once."""
        for key, value in values.items():
            self.set(key, value)


class InMemoryStore(StateStore):
    """
    Dictionary-backed store.

    Values are deep-copied on the way in and out so callers never share
    mutable state with the store.
    """

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        self._data: dict[str, Any] = copy.deepcopy(initial or {})

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)


class JsonFileStore(StateStore):
    """
    Store backed by a single JSON object on disk.

    The file is read lazily on first access and rewritten in full (via a
    temporary file and rename) on every change.
    """

    def __init__(self, path: str | Path):
        """
        Initialize the file store.

        Args:
            path: JSON file path (created on first write)
        """
        self.path = Path(path)
        self._data: Optional[dict[str, Any]] = None

    def _load(self) -> dict[str, Any]:
        if self._data is not None:
            return self._data

        if not self.path.exists():
            self._data = {}
            return self._data

        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise DataLoadError(f"Corrupt state file {self.path}: {e}")
        except OSError as e:
            raise DataLoadError(f"Failed to read state file {self.path}: {e}")

        if not isinstance(data, dict):
            raise DataLoadError(f"State file {self.path} must contain a JSON object")

        self._data = data
        return self._data

    def _flush(self, data: dict[str, Any]) -> None:
        """Write ``data`` to disk, then adopt it as the cached state."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")

        with open(tmp_path, "w") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_path, self.path)
        self._data = data
        logger.debug("Wrote state file %s", self.path)

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        data = self._load()
        if key not in data:
            return default
        return copy.deepcopy(data[key])

    def set(self, key: str, value: Any) -> None:
        self.update({key: value})

    def delete(self, key: str) -> None:
        data = dict(self._load())
        if data.pop(key, None) is not None:
            self._flush(data)

    def update(self, values: dict[str, Any]) -> None:
        data = dict(self._load())
        for key, value in values.items():
            data[key] = copy.deepcopy(value)
        self._flush(data)
