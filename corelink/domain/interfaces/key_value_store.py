"""Interface for the persistent key-value store.

Defines the contract for durably storing string values by string key, so
that the selected Core host survives process restarts.
"""

import abc
from typing import Optional

from ..models.common import StoreKey


class KeyValueStore(abc.ABC):
    """Abstract Base Class for durable key-value persistence."""

    @abc.abstractmethod
    async def get(self, key: StoreKey) -> Optional[str]:
        """Reads the value stored under a key.

        Args:
            key: The key to read.

        Returns:
            The stored string, or None if the key is absent.

        Raises:
            StorageError: If the underlying engine fails.
        """
        pass

    @abc.abstractmethod
    async def set(self, key: StoreKey, value: str) -> None:
        """Stores a value under a key, replacing any previous value.

        Args:
            key: The key to write.
            value: The string value to store.

        Raises:
            StorageError: If the underlying engine fails.
        """
        pass
