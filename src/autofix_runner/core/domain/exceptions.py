"""Domain exceptions for autofix_runner."""

from __future__ import annotations

from typing import Sequence


class AutofixRunnerError(Exception):
    """Base class for all autofix_runner errors."""


class SetupError(AutofixRunnerError):
    """Fatal error raised before any repository is processed.

    Covers missing or malformed credentials, an unreachable code host and an
    empty repository selection.
    """


class CommandError(AutofixRunnerError):
    """A subprocess failed, timed out or produced unusable output."""

    def __init__(
        self,
        message: str,
        *,
        command: Sequence[str] = (),
        exit_code: int | None = None,
        stderr: str = "",
        timed_out: bool = False,
    ) -> None:
        self.command = list(command)
        self.exit_code = exit_code
        self.stderr = stderr
        self.timed_out = timed_out
        super().__init__(message)


class GitOperationError(AutofixRunnerError):
    """A git operation (clone, fetch, commit, push, ...) failed."""

    def __init__(self, operation: str, message: str) -> None:
        self.operation = operation
        super().__init__(f"git {operation} failed: {message}")


class ArtifactError(AutofixRunnerError):
    """Creating or updating a pull request or issue failed."""

    def __init__(self, repo: str, kind: str, message: str) -> None:
        self.repo = repo
        self.kind = kind
        super().__init__(f"{kind} for {repo}: {message}")


class GitHubAPIError(AutofixRunnerError):
    """Non-success response from the GitHub REST API."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class GitHubRateLimitError(GitHubAPIError):
    """Rate limit hit (403 with exhausted quota, or 429)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        retry_after: float | None = None,
    ) -> None:
        self.retry_after = retry_after
        super().__init__(message, status_code=status_code)


class GitHubServerError(GitHubAPIError):
    """5xx response from GitHub."""
