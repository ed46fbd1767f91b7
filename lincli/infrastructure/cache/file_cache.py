"""Concrete implementation of the file-based TTL cache.

One pretty-printed JSON document per CacheType under a per-profile
directory. Expiry is checked lazily on read; there is no background
sweep. Each write goes to its own temp file in the cache directory that
is fsynced and then renamed over the target, so a reader only ever sees
the previous complete file or the new complete file.
"""

import asyncio
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from lincli.domain.interfaces.cache import CacheStore
from lincli.domain.models.cache import (
    DEFAULT_TTL_SECONDS, CacheEntry, CacheStatus, CacheType, now_seconds
)
from lincli.domain.models.errors import CacheWriteError

logger = logging.getLogger(__name__)

TEMP_SUFFIX = ".tmp"


class FileCache(CacheStore):
    """TTL cache backed by one JSON file per cache type."""

    def __init__(self, cache_dir: Path, ttl_seconds: int = DEFAULT_TTL_SECONDS):
        """Initializes the cache.

        Args:
            cache_dir: Per-profile directory holding the cache files. Created
                if missing.
            ttl_seconds: TTL stamped into entries written by this instance.
        """
        self.cache_dir = Path(cache_dir)
        self.ttl_seconds = ttl_seconds
        # Keyed read-modify-write runs in worker threads; one lock per file
        self._keyed_locks: Dict[CacheType, threading.Lock] = {
            cache_type: threading.Lock() for cache_type in CacheType.all()
        }
        self._setup_dir()
        logger.debug(f"FileCache initialized (dir={self.cache_dir}, ttl={ttl_seconds}s)")

    def with_ttl(self, ttl_seconds: int) -> "FileCache":
        """Returns a cache over the same directory that stamps `ttl_seconds` on writes."""
        sibling = FileCache(self.cache_dir, ttl_seconds)
        sibling._keyed_locks = self._keyed_locks
        return sibling

    def _setup_dir(self) -> None:
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create cache directory {self.cache_dir}: {e}")
            raise

    def path_for(self, cache_type: CacheType) -> Path:
        return self.cache_dir / cache_type.filename

    # --- Blocking helpers (run off the event loop) ---

    def _read_entry(self, cache_type: CacheType) -> Optional[CacheEntry]:
        path = self.path_for(cache_type)
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"Failed to read cache file {path}: {e}")
            return None
        try:
            return CacheEntry.from_dict(json.loads(content))
        except ValueError as e:
            logger.warning(f"Ignoring unreadable cache file {path}: {e}")
            return None

    def _remove(self, cache_type: CacheType) -> None:
        path = self.path_for(cache_type)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to delete cache file {path}: {e}")
            raise

    def _get_sync(self, cache_type: CacheType, ttl_override: Optional[int]) -> Optional[Any]:
        entry = self._read_entry(cache_type)
        if entry is None:
            return None
        ttl = entry.ttl_seconds if ttl_override is None else ttl_override
        if entry.is_valid_with_ttl(ttl):
            logger.debug(f"Cache hit for {cache_type.value} (age={entry.age_seconds()}s)")
            return entry.data
        logger.debug(f"Cache expired for {cache_type.value}. Removing file.")
        try:
            self._remove(cache_type)
        except OSError:
            pass  # already logged; the entry is reported as a miss either way
        return None

    def _write_sync(self, cache_type: CacheType, data: Any) -> None:
        path = self.path_for(cache_type)
        entry = CacheEntry(timestamp=now_seconds(), ttl_seconds=self.ttl_seconds, data=data)
        content = json.dumps(entry.to_dict(), indent=2)
        temp_path: Optional[Path] = None

        try:
            # mkstemp gives every writer its own file, created 0600
            fd, temp_name = tempfile.mkstemp(
                dir=self.cache_dir, prefix=f".{cache_type.value}.", suffix=TEMP_SUFFIX
            )
            temp_path = Path(temp_name)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            # os.replace is the commit point (atomic on POSIX and Windows)
            os.replace(temp_path, path)
        except OSError as e:
            logger.error(f"Failed to write cache file {path}: {e}")
            if temp_path is not None:
                try:
                    temp_path.unlink(missing_ok=True)
                except OSError as cleanup_error:
                    logger.debug(f"Could not remove temp file {temp_path}: {cleanup_error}")
            raise CacheWriteError(f"Failed to write cache file {path}: {e}") from e
        logger.debug(f"Stored {cache_type.value} cache at {path}")

    def _get_keyed_sync(self, cache_type: CacheType, key: str) -> Optional[Any]:
        entry = self._read_entry(cache_type)
        if entry is None or not isinstance(entry.data, dict):
            return None
        wrapper = entry.data.get(key)
        if not isinstance(wrapper, dict) or "data" not in wrapper or "timestamp" not in wrapper:
            # Pre-keyed format (no per-key timestamp) reads as expired
            return None
        try:
            timestamp = int(wrapper["timestamp"])
        except (TypeError, ValueError):
            return None
        if now_seconds() < timestamp + entry.ttl_seconds:
            return wrapper["data"]
        return None

    def _set_keyed_sync(self, cache_type: CacheType, key: str, value: Any) -> None:
        # Merge into the unfiltered existing data; per-key TTLs are managed here
        with self._keyed_locks[cache_type]:
            entry = self._read_entry(cache_type)
            data: Dict[str, Any] = entry.data if entry is not None and isinstance(entry.data, dict) else {}
            data[key] = {"data": value, "timestamp": now_seconds()}
            self._write_sync(cache_type, data)

    def _status_for(self, cache_type: CacheType, entry: Optional[CacheEntry]) -> CacheStatus:
        if entry is None:
            return CacheStatus(cache_type=cache_type, valid=False)
        try:
            size = self.path_for(cache_type).stat().st_size
        except OSError:
            size = 0
        return CacheStatus(
            cache_type=cache_type,
            valid=entry.is_valid(),
            age_seconds=entry.age_seconds(),
            size_bytes=size,
            item_count=count_items(entry.data),
        )

    # --- CacheStore Interface Implementation ---

    async def get(self, cache_type: CacheType, ttl_override: Optional[int] = None) -> Optional[Any]:
        return await asyncio.to_thread(self._get_sync, cache_type, ttl_override)

    async def get_entry(self, cache_type: CacheType) -> Optional[CacheEntry]:
        return await asyncio.to_thread(self._read_entry, cache_type)

    async def set(self, cache_type: CacheType, data: Any) -> None:
        await asyncio.to_thread(self._write_sync, cache_type, data)

    async def get_keyed(self, cache_type: CacheType, key: str) -> Optional[Any]:
        return await asyncio.to_thread(self._get_keyed_sync, cache_type, key)

    async def set_keyed(self, cache_type: CacheType, key: str, value: Any) -> None:
        await asyncio.to_thread(self._set_keyed_sync, cache_type, key, value)

    async def clear_type(self, cache_type: CacheType) -> None:
        await asyncio.to_thread(self._remove, cache_type)
        logger.info(f"Cleared {cache_type.display_name} cache.")

    async def clear_all(self) -> None:
        for cache_type in CacheType.all():
            await self.clear_type(cache_type)

    async def status(self) -> List[CacheStatus]:
        statuses = []
        for cache_type in CacheType.all():
            entry = await self.get_entry(cache_type)
            statuses.append(await asyncio.to_thread(self._status_for, cache_type, entry))
        return statuses


def count_items(data: Any) -> int:
    """Item count for status: list length, connection `.nodes` length, else 1."""
    if isinstance(data, list):
        return len(data)
    if isinstance(data, dict) and isinstance(data.get("nodes"), list):
        return len(data["nodes"])
    return 1
