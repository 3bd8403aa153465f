"""Disk-backed implementation of the KeyValueStore interface.

Uses `diskcache` so the selected Core host survives process restarts.
Values never expire.
"""

import asyncio
import logging
import sqlite3
from pathlib import Path
from typing import Optional, Union

import diskcache as dc

from corelink.domain.errors import StorageError
from corelink.domain.interfaces.key_value_store import KeyValueStore
from corelink.domain.models.common import StoreKey

logger = logging.getLogger(__name__)

# Seconds diskcache waits on its SQLite lock before giving up
DEFAULT_DB_TIMEOUT_S = 1


class DiskKeyValueStore(KeyValueStore):
    """KeyValueStore persisted in a diskcache directory."""

    def __init__(self, directory: Union[str, Path], timeout: float = DEFAULT_DB_TIMEOUT_S):
        """Opens (or creates) the store.

        Args:
            directory: Directory holding the diskcache database.
            timeout: SQLite lock timeout in seconds.

        Raises:
            StorageError: If the directory cannot be opened.
        """
        self.directory = Path(directory).expanduser()
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            self._cache = dc.Cache(str(self.directory), timeout=timeout)
        except (OSError, sqlite3.Error, dc.Timeout) as e:
            logger.error(f"Failed to open state store at {self.directory}: {e}")
            raise StorageError(f"Could not open state store at {self.directory}: {e}") from e
        logger.info(f"State store opened at: {self._cache.directory}")

    async def get(self, key: StoreKey) -> Optional[str]:
        try:
            value = await asyncio.to_thread(self._cache.get, key, default=None)
        except (OSError, sqlite3.Error, dc.Timeout) as e:
            raise StorageError(f"Failed to read '{key}': {e}") from e
        logger.debug(f"State store get: key={key}, found={value is not None}")
        return value

    async def set(self, key: StoreKey, value: str) -> None:
        # Without retry, a lock held past `timeout` raises dc.Timeout
        try:
            await asyncio.to_thread(self._cache.set, key, value)
        except (OSError, sqlite3.Error, dc.Timeout) as e:
            raise StorageError(f"Failed to write '{key}': {e}") from e
        logger.debug(f"State store set: key={key}")

    def close(self) -> None:
        self._cache.close()
