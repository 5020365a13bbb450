"""Key-value stores backing the wave forecast cache."""
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union

from ..utils.file_io import read_json, write_json

logger = logging.getLogger("data.cache_store")


class KeyValueStore(Protocol):
    """Async store holding JSON-compatible values under string keys."""

    async def get(self, key: str) -> Optional[Any]:
        """Return the value for ``key``, or None if absent or unreadable."""
        ...

    async def set(self, key: str, value: Any) -> None:
        """Replace the value for ``key``."""
        ...


class MemoryStore:
    """In-process store; values live as long as the store object."""

    def __init__(self) -> None:
        self._data: Dict[str, Any] = {}

    async def get(self, key: str) -> Optional[Any]:
        return self._data.get(key)

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = value


class JsonFileStore:
    """
    One JSON file per key under a directory.

    Writes go through a temporary file and an atomic rename; a missing or
    corrupt file reads as absent.
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        safe_key = re.sub(r"[^A-Za-z0-9._-]", "_", key)
        return self.directory / safe_key

    async def get(self, key: str) -> Optional[Any]:
        path = self._path(key)
        try:
            return await read_json(path)
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Ignoring unreadable cache file {path}: {e}")
            return None

    async def set(self, key: str, value: Any) -> None:
        await write_json(self._path(key), value)
