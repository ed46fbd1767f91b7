"""Value Objects for the TTL cache context.

A cache file holds one CacheEntry. The entry's data is either an opaque
JSON value (usually the node list of a full listing) or, for keyed
types like per-team statuses, a map of sub-key -> {"data", "timestamp"}.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

DEFAULT_TTL_SECONDS = 60 * 60  # 1 hour


def now_seconds() -> int:
    """Current Unix time in whole seconds."""
    return int(time.time())


class CacheType(Enum):
    """Logical resources cached by the CLI, one file each."""
    TEAMS = "teams"
    USERS = "users"
    STATUSES = "statuses"
    LABELS = "labels"
    PROJECTS = "projects"
    VIEWS = "views"

    @property
    def filename(self) -> str:
        return f"{self.value}.json"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @classmethod
    def all(cls) -> List["CacheType"]:
        return list(cls)


@dataclass
class CacheEntry:
    """Timestamped payload as persisted on disk."""
    timestamp: int
    ttl_seconds: int
    data: Any

    def is_valid(self) -> bool:
        """Checks validity against the entry's own stored TTL."""
        return self.is_valid_with_ttl(self.ttl_seconds)

    def is_valid_with_ttl(self, ttl_seconds: int) -> bool:
        """Checks validity against a caller-supplied TTL."""
        return now_seconds() < self.timestamp + ttl_seconds

    def age_seconds(self) -> int:
        return max(0, now_seconds() - self.timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {"timestamp": self.timestamp, "ttl_seconds": self.ttl_seconds, "data": self.data}

    @classmethod
    def from_dict(cls, raw: Any) -> "CacheEntry":
        """Builds an entry from decoded JSON.

        Raises:
            ValueError: If the document does not have the entry shape.
        """
        if not isinstance(raw, dict) or "data" not in raw:
            raise ValueError("cache document is not an entry object")
        try:
            timestamp = int(raw["timestamp"])
            ttl_seconds = int(raw["ttl_seconds"])
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"invalid cache entry header: {e}") from e
        return cls(timestamp=timestamp, ttl_seconds=ttl_seconds, data=raw["data"])


@dataclass
class CacheStatus:
    """Per-type report produced by `cache status`."""
    cache_type: CacheType
    valid: bool
    age_seconds: Optional[int] = None
    size_bytes: Optional[int] = None
    item_count: Optional[int] = None

    def age_display(self) -> str:
        if self.age_seconds is None:
            return "-"
        secs = self.age_seconds
        if secs < 60:
            return f"{secs}s"
        if secs < 3600:
            return f"{secs // 60}m"
        return f"{secs // 3600}h {(secs % 3600) // 60}m"

    def size_display(self) -> str:
        if self.size_bytes is None:
            return "-"
        size = self.size_bytes
        if size < 1024:
            return f"{size} B"
        if size < 1024 * 1024:
            return f"{size / 1024:.1f} KB"
        return f"{size / (1024 * 1024):.1f} MB"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.cache_type.value,
            "valid": self.valid,
            "age_seconds": self.age_seconds,
            "size_bytes": self.size_bytes,
            "item_count": self.item_count,
        }


@dataclass(frozen=True)
class CacheOptions:
    """Caller-side cache preferences (from --cache-ttl / --no-cache).

    `ttl_seconds`, when set, replaces the stored TTL when judging reads.
    """
    ttl_seconds: Optional[int] = None
    no_cache: bool = False
