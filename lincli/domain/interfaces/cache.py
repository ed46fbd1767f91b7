"""Interface for the TTL cache.

Defines the contract for storing, retrieving, and managing cached data,
one logical resource (CacheType) per backing document, with optional
independently-timestamped sub-keys.
"""

import abc
from typing import Any, List, Optional

# Import relevant domain models
from ..models.cache import CacheEntry, CacheStatus, CacheType

class CacheStore(abc.ABC):
    """Abstract Base Class for caching operations."""

    @abc.abstractmethod
    async def get(self, cache_type: CacheType, ttl_override: Optional[int] = None) -> Optional[Any]:
        """Retrieves cached data if still valid.

        Validity is judged against the entry's stored TTL, or against
        `ttl_override` when given. Expired entries are evicted on read.

        Args:
            cache_type: The logical resource to read.
            ttl_override: Optional TTL in seconds replacing the stored one.

        Returns:
            The cached data, or None if absent, expired or unreadable.
        """
        pass

    @abc.abstractmethod
    async def get_entry(self, cache_type: CacheType) -> Optional[CacheEntry]:
        """Retrieves the raw entry without validity filtering."""
        pass

    @abc.abstractmethod
    async def set(self, cache_type: CacheType, data: Any) -> None:
        """Replaces the cached data for a type with a fresh timestamp.

        Args:
            cache_type: The logical resource to write.
            data: Any JSON-serializable value.
        """
        pass

    @abc.abstractmethod
    async def get_keyed(self, cache_type: CacheType, key: str) -> Optional[Any]:
        """Retrieves one sub-key of a keyed entry if that sub-key is still valid."""
        pass

    @abc.abstractmethod
    async def set_keyed(self, cache_type: CacheType, key: str, value: Any) -> None:
        """Upserts one sub-key of a keyed entry, leaving other sub-keys untouched."""
        pass

    @abc.abstractmethod
    async def clear_type(self, cache_type: CacheType) -> None:
        """Deletes the cached data for one type. No-op if absent."""
        pass

    @abc.abstractmethod
    async def clear_all(self) -> None:
        """Deletes the cached data for every type."""
        pass

    @abc.abstractmethod
    async def status(self) -> List[CacheStatus]:
        """Reports validity, age, size and item count for every type."""
        pass
