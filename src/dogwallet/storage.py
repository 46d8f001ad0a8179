"""
Key-value persistence for wallet state.

Values must be JSON-serializable. Writes are per key, so repeating a write
with the same value is harmless.
"""

from __future__ import annotations

import copy
import json
import os
from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from loguru import logger


class KeyValueStore(ABC):
    """Abstract key-value store consumed by the wallet."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the value for key, or None if absent"""

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Store value under key"""

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Delete key if present"""

    @abstractmethod
    async def clear(self) -> None:
        """Delete every key"""

    async def get_many(self, keys: Iterable[str]) -> dict[str, Any]:
        """Return a dict of the keys that are present."""
        result: dict[str, Any] = {}
        for key in keys:
            value = await self.get(key)
            if value is not None:
                result[key] = value
        return result


class MemoryStore(KeyValueStore):
    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    async def get(self, key: str) -> Any | None:
        return copy.deepcopy(self._data.get(key))

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    async def clear(self) -> None:
        self._data.clear()

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStore(KeyValueStore):
    """
    Store backed by a single JSON file.

    The whole file is rewritten on every change through a temporary file and
    an atomic rename, so a crash leaves either the old or the new contents.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._data: dict[str, Any] = self._load()

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except json.JSONDecodeError as e:
            logger.error(f"Corrupt wallet store {self.path}: {e}")
            raise
        if not isinstance(data, dict):
            raise ValueError(f"Wallet store {self.path} does not contain a JSON object")
        return data

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(self._data, indent=2, sort_keys=True))
        os.chmod(tmp_path, 0o600)  # holds the private key
        os.replace(tmp_path, self.path)

    async def get(self, key: str) -> Any | None:
        return copy.deepcopy(self._data.get(key))

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)
        self._flush()

    async def remove(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._flush()

    async def clear(self) -> None:
        self._data = {}
        self._flush()
        logger.info(f"Cleared wallet store {self.path}")
