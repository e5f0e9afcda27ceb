from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum

from ..domain.descriptions import build_issue_description, build_pr_description
from ..domain.exceptions import ArtifactError, AutofixRunnerError
from ..domain.models import (
    ArtifactKind,
    ArtifactRef,
    CacheResult,
    LintResult,
    OutcomeStatus,
    ProcessingOutcome,
    RepositoryContext,
)
from ..ports import CacheStorePort, GitPort, LoggerPort
from .artifact_manager import ArtifactManager
from .context_factory import RepositoryContextFactory
from .lint_engine import LintEngine


class ProcessingState(str, Enum):
    START = "start"
    CLONED = "cloned"
    LINT_CHECKED = "lint_checked"
    CLEAN = "clean"
    NEEDS_FIX = "needs_fix"
    AUTOCORRECTED = "autocorrected"
    NO_REAL_CHANGE = "no_real_change"
    COMMITTED = "committed"
    PUSHED = "pushed"
    ARTIFACT_CREATED = "artifact_created"
    CACHE_UPDATED = "cache_updated"
    DONE = "done"
    ERROR = "error"


@dataclass(frozen=True)
class ProcessorSettings:
    """Per-run knobs for the repository processor."""
    branch_name: str = "cookstyle-fixes"
    pr_title: str = "Cookstyle Automated Changes"
    issue_title: str = "Manual Cookstyle Fixes Required"
    commit_message: str = "Cookstyle auto-corrections"
    tool_name: str = "Cookstyle"
    cache_ttl_days: float = 7
    use_cache: bool = True
    force_refresh: bool = False
    force_refresh_repos: tuple[str, ...] = ()
    dry_run: bool = False
    create_manual_fix_issues: bool = True
    cleanup_workdirs: bool = False


@dataclass
class _Run:
    """Mutable bookkeeping for one repository, owned by a single worker."""
    ctx: RepositoryContext
    started: float
    state: ProcessingState = ProcessingState.START
    sha: str | None = None
    base_branch: str | None = None
    lint: LintResult | None = None
    artifacts: list[ArtifactRef] = field(default_factory=list)
    artifact_errors: list[str] = field(default_factory=list)


class RepositoryProcessor:
    """Per-repository state machine.

    start -> cloned -> lint_checked -> clean | needs_fix
    needs_fix -> autocorrected -> no_real_change | committed -> pushed -> artifact_created
    ... -> cache_updated -> done, with any failure ending in error.

    Nothing raised inside the pipeline escapes ``process``: failures become an
    ``error`` outcome and, once the commit SHA is known, a best-effort cache
    entry with result ``error``.
    """

    def __init__(
        self,
        *,
        contexts: RepositoryContextFactory,
        git: GitPort,
        lint: LintEngine,
        artifacts: ArtifactManager,
        cache: CacheStorePort,
        logger: LoggerPort,
        settings: ProcessorSettings,
    ) -> None:
        self._contexts = contexts
        self._git = git
        self._lint = lint
        self._artifacts = artifacts
        self._cache = cache
        self._logger = logger
        self._settings = settings

    def process(self, repo_url: str, default_branch: str | None = None) -> ProcessingOutcome:
        started = time.monotonic()
        try:
            ctx = self._contexts.create(repo_url, default_branch=default_branch)
        except ValueError as e:
            self._logger.error("invalid_repository", repo=repo_url, error=str(e))
            return ProcessingOutcome(repo=repo_url, status=OutcomeStatus.ERROR, error=str(e))

        run = _Run(ctx=ctx, started=started)
        ctx.logger.info("processing_started", clone_url=ctx.clone_url, default_branch=ctx.default_branch)
        try:
            outcome = self._pipeline(run)
        except AutofixRunnerError as e:
            ctx.logger.error("processing_failed", state=run.state.value, error=str(e))
            outcome = self._fail(run, str(e))
        except Exception as e:
            ctx.logger.exception("processing_crashed", state=run.state.value, error=str(e))
            outcome = self._fail(run, f"{type(e).__name__}: {e}")
        finally:
            if self._settings.cleanup_workdirs:
                self._cleanup(ctx)

        ctx.logger.info(
            "processing_finished",
            status=outcome.status.value,
            auto_count=outcome.auto_count,
            manual_count=outcome.manual_count,
            elapsed=round(outcome.elapsed, 3),
        )
        return outcome

    def _transition(self, run: _Run, state: ProcessingState) -> None:
        run.ctx.logger.debug("state_transition", from_state=run.state.value, to_state=state.value)
        run.state = state

    def _elapsed(self, run: _Run) -> float:
        return time.monotonic() - run.started

    def _forced(self, ctx: RepositoryContext) -> bool:
        if self._settings.force_refresh:
            return True
        return ctx.name in self._settings.force_refresh_repos or ctx.full_name in self._settings.force_refresh_repos

    def _outcome(self, run: _Run, status: OutcomeStatus, error: str | None = None) -> ProcessingOutcome:
        lint = run.lint or LintResult.empty()
        return ProcessingOutcome(
            repo=run.ctx.full_name,
            status=status,
            auto_count=lint.auto_correctable_count,
            manual_count=lint.manual_only_count,
            elapsed=self._elapsed(run),
            error=error,
            artifacts=tuple(run.artifacts),
            artifact_errors=tuple(run.artifact_errors),
        )

    def _record(self, run: _Run, result: CacheResult) -> None:
        if not self._settings.use_cache or self._settings.dry_run or run.sha is None:
            return
        self._cache.record(run.ctx.full_name, run.sha, result, processing_time=self._elapsed(run))
        self._transition(run, ProcessingState.CACHE_UPDATED)

    def _record_best_effort(self, run: _Run) -> None:
        try:
            self._record(run, CacheResult.ERROR)
        except Exception as e:
            run.ctx.logger.warning("cache_update_failed", error=str(e))

    def _fail(self, run: _Run, message: str) -> ProcessingOutcome:
        self._transition(run, ProcessingState.ERROR)
        self._record_best_effort(run)
        return self._outcome(run, OutcomeStatus.ERROR, error=message)

    def _cleanup(self, ctx: RepositoryContext) -> None:
        try:
            self._git.cleanup(ctx)
        except OSError as e:
            ctx.logger.warning("workdir_cleanup_failed", repo_dir=str(ctx.repo_dir), error=str(e))

    def _pipeline(self, run: _Run) -> ProcessingOutcome:
        ctx = run.ctx
        settings = self._settings

        # the remote may lack the requested branch; the adapter reports what it checked out
        run.base_branch = self._git.clone_or_update(ctx, ctx.default_branch) or ctx.default_branch
        self._transition(run, ProcessingState.CLONED)
        run.sha = self._git.current_sha(ctx)

        # skip decisions use SHA + TTL only
        if settings.use_cache and not self._forced(ctx):
            if self._cache.check_fresh(ctx.full_name, run.sha, settings.cache_ttl_days):
                ctx.logger.info("cache_hit", sha=run.sha)
                self._transition(run, ProcessingState.DONE)
                return self._outcome(run, OutcomeStatus.SKIPPED)
            ctx.logger.debug("cache_miss", sha=run.sha)

        run.lint = self._lint.check(ctx.repo_dir)
        self._transition(run, ProcessingState.LINT_CHECKED)
        if run.lint.error is not None:
            return self._fail(run, f"lint output unusable: {run.lint.error}")

        ctx.logger.info(
            "lint_checked",
            total=run.lint.total_count,
            auto_correctable=run.lint.auto_correctable_count,
            manual=run.lint.manual_only_count,
        )

        if run.lint.is_clean:
            self._transition(run, ProcessingState.CLEAN)
            self._record(run, CacheResult.SUCCESS)
            self._transition(run, ProcessingState.DONE)
            return self._outcome(run, OutcomeStatus.NO_ISSUES)

        self._transition(run, ProcessingState.NEEDS_FIX)
        self._git.reset_branch(ctx, settings.branch_name)
        has_changes = self._lint.autocorrect(ctx.repo_dir)
        self._transition(run, ProcessingState.AUTOCORRECTED)

        if settings.dry_run:
            ctx.logger.info("dry_run_stop", has_changes=has_changes)
            self._transition(run, ProcessingState.DONE)
            return self._outcome(run, OutcomeStatus.ISSUES_FOUND)

        if has_changes:
            self._git.commit_all(ctx, settings.commit_message)
            self._transition(run, ProcessingState.COMMITTED)
            self._git.push_branch(ctx, settings.branch_name)
            self._transition(run, ProcessingState.PUSHED)
            self._open_pull_request(run)
        else:
            self._transition(run, ProcessingState.NO_REAL_CHANGE)
            ctx.logger.info("autocorrect_no_changes", manual=run.lint.manual_only_count)

        if run.lint.manual_only_count > 0 and settings.create_manual_fix_issues:
            self._open_issue(run)

        if run.artifact_errors:
            self._transition(run, ProcessingState.ERROR)
            self._record_best_effort(run)
            return self._outcome(run, OutcomeStatus.ERROR, error="; ".join(run.artifact_errors))

        if not has_changes and run.lint.manual_only_count == 0:
            self._record(run, CacheResult.SUCCESS)
            self._transition(run, ProcessingState.DONE)
            return self._outcome(run, OutcomeStatus.NO_ISSUES)

        self._record(run, CacheResult.ISSUES_FOUND)
        self._transition(run, ProcessingState.DONE)

        kinds = {a.kind for a in run.artifacts}
        if ArtifactKind.PULL_REQUEST in kinds:
            return self._outcome(run, OutcomeStatus.AUTO_FIXED_PR_CREATED)
        if ArtifactKind.ISSUE in kinds:
            return self._outcome(run, OutcomeStatus.MANUAL_ISSUE_CREATED)
        return self._outcome(run, OutcomeStatus.ISSUES_FOUND)

    def _open_pull_request(self, run: _Run) -> None:
        settings = self._settings
        body = build_pr_description(run.lint, tool_name=settings.tool_name)
        try:
            ref = self._artifacts.create_pull_request(
                run.ctx.full_name,
                settings.branch_name,
                settings.pr_title,
                body,
                base=run.base_branch or run.ctx.default_branch,
            )
        except ArtifactError as e:
            run.ctx.logger.error("pr_creation_failed", operation="create_pull_request", error=str(e))
            run.artifact_errors.append(str(e))
            return
        run.artifacts.append(ref)
        self._transition(run, ProcessingState.ARTIFACT_CREATED)

    def _open_issue(self, run: _Run) -> None:
        body = build_issue_description(run.lint, tool_name=self._settings.tool_name)
        try:
            ref = self._artifacts.create_issue(run.ctx.full_name, self._settings.issue_title, body)
        except ArtifactError as e:
            run.ctx.logger.error("issue_creation_failed", operation="create_issue", error=str(e))
            run.artifact_errors.append(str(e))
            return
        run.artifacts.append(ref)
        self._transition(run, ProcessingState.ARTIFACT_CREATED)
