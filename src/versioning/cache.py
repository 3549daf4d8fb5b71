"""TTL caches for registry responses.

Two interchangeable backends share ``get(key)`` / ``set(key, value, ttl)``:
``TTLCache`` lives in memory for one process, ``FileCache`` persists JSON
files under the app data directory so listings survive between runs.
"""

from __future__ import annotations

import json
import logging
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Generic, Optional, TypeVar

from constants import Constants, app_data_dir

logger = logging.getLogger(__name__)

T = TypeVar("T")


def safe_key_segment(text: str) -> str:
    """Make ``text`` usable as a file name: keep ``[A-Za-z0-9._-]``, map the rest to ``_``."""
    out = "".join(ch if (ch.isascii() and ch.isalnum()) or ch in "-_." else "_" for ch in text)
    return out or "_"


def cache_dir() -> Path:
    """Directory holding on-disk cache files."""
    return app_data_dir() / "cache"


@dataclass
class CacheEntry(Generic[T]):
    """A single cache entry with TTL."""

    value: T
    expires_at: float
    created_at: float = field(default_factory=time.time)

    def is_expired(self) -> bool:
        """Check if this entry has expired."""
        return time.time() > self.expires_at


class TTLCache:
    """In-memory TTL cache keyed by string."""

    def __init__(self, default_ttl: int = Constants.REGISTRY_CACHE_TTL_SEC):
        self._default_ttl = default_ttl
        self._cache: Dict[str, CacheEntry[Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        """Cached value, or None if missing/expired."""
        entry = self._cache.get(key)
        if entry is None:
            return None
        if entry.is_expired():
            del self._cache[key]
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Cache ``value`` for ``ttl`` seconds (default TTL when None)."""
        effective_ttl = ttl if ttl is not None else self._default_ttl
        self._cache[key] = CacheEntry(value=value, expires_at=time.time() + effective_ttl)

    def invalidate(self, key: str) -> None:
        self._cache.pop(key, None)

    def clear(self) -> None:
        """Clear all cached entries."""
        self._cache.clear()


class FileCache:
    """JSON-file TTL cache, one file per key.

    Unreadable or corrupt files count as misses. Write failures are logged
    and otherwise ignored: the cache is an optimisation, never a source of
    truth.
    """

    def __init__(self, directory: Optional[Path] = None, default_ttl: int = Constants.REGISTRY_CACHE_TTL_SEC):
        self._directory = Path(directory) if directory is not None else cache_dir()
        self._default_ttl = default_ttl

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        return self._directory / f"{safe_key_segment(key)}.json"

    def get(self, key: str) -> Optional[Any]:
        """Cached value, or None if missing, corrupt or expired."""
        path = self.path_for(key)
        try:
            with open(path, "r", encoding="utf-8") as fh:
                raw = json.load(fh)
            entry = CacheEntry(
                value=raw["value"],
                expires_at=float(raw["expires_at"]),
                created_at=float(raw.get("fetched_at", 0)),
            )
        except FileNotFoundError:
            return None
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.debug("Discarding unreadable cache file %s: %s", path, exc)
            return None
        if entry.is_expired():
            logger.debug("Cache entry %s expired", key)
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Persist ``value`` for ``ttl`` seconds (default TTL when None)."""
        effective_ttl = ttl if ttl is not None else self._default_ttl
        now = time.time()
        payload = {"value": value, "fetched_at": now, "expires_at": now + effective_ttl}
        path = self.path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(".tmp")
            with open(tmp, "w", encoding="utf-8") as fh:
                json.dump(payload, fh)
            tmp.replace(path)
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("Could not write cache file %s: %s", path, exc)

    def invalidate(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)

    def clear(self) -> None:
        """Remove the whole cache directory."""
        if self._directory.exists():
            shutil.rmtree(self._directory)
