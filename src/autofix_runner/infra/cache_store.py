from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from ..core.domain.models import (
    CacheEntry,
    CacheResult,
    CacheStats,
    is_entry_fresh,
)

logger = logging.getLogger(__name__)

CACHE_FILENAME = "cache.json"


class JsonCacheStore:
    """Processing cache backed by a single JSON file.

    The file is read once at construction and rewritten whole after every
    ``record``/``clear``. All reads, writes and counters go through one lock,
    so the store can be shared by every worker thread.
    """

    def __init__(
        self,
        *,
        cache_dir: Path,
        default_ttl_days: float = 7,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._path = Path(cache_dir) / CACHE_FILENAME
        self._default_ttl_days = default_ttl_days
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, CacheEntry] = {}
        self._last_updated: str | None = None
        self._hits = 0
        self._misses = 0
        self._updates = 0
        self._time_saved = 0.0
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Cache file %s unreadable, starting with an empty cache: %s", self._path, e)
            return

        repositories = data.get("repositories") if isinstance(data, dict) else None
        if not isinstance(repositories, dict):
            logger.warning("Cache file %s has unexpected structure, starting with an empty cache", self._path)
            return

        for key, raw in repositories.items():
            try:
                self._entries[key] = CacheEntry.from_dict(key, raw)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed cache entry %s: %s", key, e)

        last_updated = data.get("last_updated")
        self._last_updated = last_updated if isinstance(last_updated, str) else None

    def _persist_locked(self) -> None:
        """Write the whole cache atomically. Caller holds the lock."""
        self._last_updated = datetime.now(timezone.utc).isoformat()
        payload: dict[str, Any] = {
            "repositories": {k: e.to_dict() for k, e in sorted(self._entries.items())},
            "last_updated": self._last_updated,
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".cache-", suffix=".json", dir=self._path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=2)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def lookup(self, key: str) -> CacheEntry | None:
        with self._lock:
            return self._entries.get(key)

    def is_fresh(self, entry: CacheEntry | None, current_sha: str, ttl_days: float) -> bool:
        return is_entry_fresh(entry, current_sha, ttl_days, self._clock())

    def check_fresh(self, key: str, current_sha: str, ttl_days: float) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            fresh = is_entry_fresh(entry, current_sha, ttl_days, self._clock())
            if fresh:
                self._hits += 1
                self._time_saved += entry.processing_time
            else:
                self._misses += 1
            return fresh

    def record(
        self,
        key: str,
        sha: str,
        result: CacheResult,
        timestamp: float | None = None,
        processing_time: float = 0.0,
    ) -> CacheEntry:
        """Store the latest state for ``key`` and persist before returning."""
        entry = CacheEntry(
            key=key,
            sha=sha,
            timestamp=self._clock() if timestamp is None else timestamp,
            result=CacheResult(result),
            ttl_days=self._default_ttl_days,
            processing_time=processing_time,
        )
        with self._lock:
            self._entries[key] = entry
            self._updates += 1
            self._persist_locked()
        return entry

    def clear(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)
            self._persist_locked()

    def entries(self) -> list[CacheEntry]:
        with self._lock:
            return sorted(self._entries.values(), key=lambda e: e.key)

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                updates=self._updates,
                time_saved=round(self._time_saved, 2),
                entry_count=len(self._entries),
                last_updated=self._last_updated,
            )
