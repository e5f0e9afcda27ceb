from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Protocol, Sequence, Union

from ..domain.models import OutcomeStatus, ProcessingOutcome, RemoteRepository
from ..ports import LoggerPort


class Processor(Protocol):
    def process(self, repo_url: str, default_branch: str | None = None) -> ProcessingOutcome:
        ...


# a bare URL is processed against the configured default branch
RepositoryTarget = Union[RemoteRepository, str]


class ConcurrencyCoordinator:
    """Fans repositories out over a bounded thread pool.

    The executor's shared work queue hands the next repository to whichever
    worker frees up first. Outcomes are returned in completion order.
    """

    def __init__(
        self,
        *,
        processor: Processor,
        logger: LoggerPort,
        thread_count: int = 4,
    ) -> None:
        if thread_count < 1:
            raise ValueError("thread_count must be at least 1")
        self._processor = processor
        self._logger = logger
        self._thread_count = thread_count

    def worker_count(self, repo_count: int) -> int:
        return min(self._thread_count, repo_count)

    def _guarded(self, target: RepositoryTarget) -> ProcessingOutcome:
        repo_url = target if isinstance(target, str) else target.clone_url
        try:
            if isinstance(target, str):
                return self._processor.process(repo_url)
            return self._processor.process(repo_url, default_branch=target.default_branch)
        except Exception as e:
            # processor is expected to contain its own failures
            self._logger.exception("worker_crashed", repo=repo_url, error=str(e))
            return ProcessingOutcome(
                repo=repo_url,
                status=OutcomeStatus.ERROR,
                error=f"{type(e).__name__}: {e}",
            )

    def run(self, targets: Sequence[RepositoryTarget]) -> list[ProcessingOutcome]:
        total = len(targets)
        if total == 0:
            return []

        workers = self.worker_count(total)
        self._logger.info("coordinator_started", repositories=total, workers=workers)

        outcomes: list[ProcessingOutcome] = []
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="autofix-worker") as pool:
            futures: list[Future[ProcessingOutcome]] = [pool.submit(self._guarded, t) for t in targets]
            for index, future in enumerate(as_completed(futures), start=1):
                outcome = future.result()
                outcomes.append(outcome)
                self._logger.info(
                    "repository_completed",
                    progress=f"[{index}/{total}]",
                    repo=outcome.repo,
                    status=outcome.status.value,
                )
        return outcomes
