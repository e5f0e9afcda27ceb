from __future__ import annotations

from ..domain.models import CacheStatus
from ..ports import CacheStorePort


class CacheStatusUseCase:
    def __init__(self, *, cache: CacheStorePort) -> None:
        self._cache = cache

    def execute(self) -> CacheStatus:
        return CacheStatus(stats=self._cache.stats(), entries=self._cache.entries())
