from __future__ import annotations

from ..ports import CacheStorePort


class ClearCacheUseCase:
    def __init__(self, *, cache: CacheStorePort) -> None:
        self._cache = cache

    def execute(self, repo: str | None = None) -> None:
        """Clear processing cache entries.

        Args:
            repo: ``owner/name`` key to drop; None clears every entry
        """
        self._cache.clear(repo)
