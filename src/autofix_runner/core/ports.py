from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence

from .domain.models import (
    ArtifactRef,
    CacheEntry,
    CacheResult,
    CacheStats,
    RemoteRepository,
    RepositoryContext,
)


class LoggerPort(Protocol):
    """Port for structured logging.

    Messages are short snake_case event names; context goes into keyword
    fields (``repo=``, ``operation=``, ``error=``, ...).
    """

    def debug(self, message: str, **fields) -> None:
        ...

    def info(self, message: str, **fields) -> None:
        ...

    def warning(self, message: str, **fields) -> None:
        ...

    def error(self, message: str, exc_info: bool = False, **fields) -> None:
        ...

    def exception(self, message: str, **fields) -> None:
        ...

    def bind(self, **fields) -> "LoggerPort":
        """Return a logger that adds ``fields`` to every record."""
        ...


class CacheStorePort(Protocol):
    """Port for the shared, thread-safe processing cache."""

    def lookup(self, key: str) -> CacheEntry | None:
        ...

    def is_fresh(self, entry: CacheEntry | None, current_sha: str, ttl_days: float) -> bool:
        ...

    def check_fresh(self, key: str, current_sha: str, ttl_days: float) -> bool:
        """Lookup plus freshness check, counted as a hit or a miss."""
        ...

    def record(
        self,
        key: str,
        sha: str,
        result: CacheResult,
        timestamp: float | None = None,
        processing_time: float = 0.0,
    ) -> CacheEntry:
        ...

    def stats(self) -> CacheStats:
        ...

    def entries(self) -> list[CacheEntry]:
        ...

    def clear(self, key: str | None = None) -> None:
        ...


class GitPort(Protocol):
    """Port for version-control operations on a repository working tree."""

    def clone_or_update(self, ctx: RepositoryContext, branch: str) -> str:
        """Check out ``branch``, or the remote HEAD branch when it is absent.

        Returns the branch actually checked out.
        """
        ...

    def current_sha(self, ctx: RepositoryContext) -> str:
        ...

    def reset_branch(self, ctx: RepositoryContext, branch: str) -> None:
        """Delete ``branch`` if present, recreate it from HEAD and check it out."""
        ...

    def has_changes(self, repo_dir: Path) -> bool:
        """True when the working tree differs from HEAD, ignoring file-mode-only changes."""
        ...

    def commit_all(self, ctx: RepositoryContext, message: str) -> str:
        ...

    def push_branch(self, ctx: RepositoryContext, branch: str) -> None:
        """Force-push ``branch`` to the authenticated remote."""
        ...

    def cleanup(self, ctx: RepositoryContext) -> None:
        ...


@dataclass(frozen=True)
class CommandResult:
    """Completed subprocess invocation."""
    args: tuple[str, ...]
    exit_code: int
    stdout: str
    stderr: str
    duration: float = 0.0


class CommandRunnerPort(Protocol):
    def run(self, args: Sequence[str], *, cwd: Path, timeout: float) -> CommandResult:
        """Run a command to completion.

        Raises:
            CommandError: On timeout or when the executable cannot be started
        """
        ...


class CodeHostPort(Protocol):
    """Port for the code-hosting API (repositories, pull requests, issues)."""

    def search_repositories(self, owner: str, topics: Sequence[str]) -> list[RemoteRepository]:
        ...

    def list_open_pull_requests(self, repo: str, *, head: str) -> list[ArtifactRef]:
        """Open pull requests whose head is ``owner:branch``."""
        ...

    def create_pull_request(
        self, repo: str, *, title: str, head: str, base: str, body: str
    ) -> ArtifactRef:
        ...

    def update_pull_request(
        self, repo: str, number: int, *, body: str, title: str | None = None
    ) -> ArtifactRef:
        ...

    def list_open_issues(self, repo: str) -> list[ArtifactRef]:
        ...

    def create_issue(self, repo: str, *, title: str, body: str) -> ArtifactRef:
        ...

    def update_issue(self, repo: str, number: int, *, body: str) -> ArtifactRef:
        ...

    def add_labels(self, repo: str, number: int, labels: Sequence[str]) -> None:
        ...


class TokenProviderPort(Protocol):
    """Port yielding a usable access token for git and API calls."""

    def token(self) -> str:
        ...

    def authenticated_url(self, owner: str, name: str) -> str:
        ...
