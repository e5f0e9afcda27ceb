from __future__ import annotations

import time
from typing import Sequence

from ..domain.models import RunSummary
from ..ports import CacheStorePort, LoggerPort
from ..services import ConcurrencyCoordinator, RepositoryDiscovery


class RunUseCase:
    """Discover repositories, process them concurrently, summarize.

    Setup errors from discovery propagate; per-repository failures are
    already folded into the outcomes by the processor.
    """

    def __init__(
        self,
        *,
        discovery: RepositoryDiscovery,
        coordinator: ConcurrencyCoordinator,
        cache: CacheStorePort,
        logger: LoggerPort,
    ) -> None:
        self._discovery = discovery
        self._coordinator = coordinator
        self._cache = cache
        self._logger = logger

    def execute(self, repos: Sequence[str] | None = None) -> RunSummary:
        started = time.monotonic()
        selected = self._discovery.discover(only=repos)

        self._logger.info("run_started", repositories=[r.full_name for r in selected])
        outcomes = self._coordinator.run(selected)

        summary = RunSummary(
            total_repos=len(selected),
            outcomes=tuple(outcomes),
            cache_stats=self._cache.stats(),
            elapsed=time.monotonic() - started,
        )
        self._logger.info(
            "run_finished",
            total=summary.total_repos,
            processed=summary.processed_count,
            skipped=summary.skipped_count,
            issues=summary.issues_count,
            errors=summary.error_count,
            artifact_errors=len(summary.artifact_errors),
            elapsed=round(summary.elapsed, 3),
        )
        return summary
