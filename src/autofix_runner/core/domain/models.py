from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .credentials import Credentials

if TYPE_CHECKING:
    from ..ports import LoggerPort


SECONDS_PER_DAY = 86_400


@dataclass(frozen=True)
class RemoteRepository:
    """Repository as reported by the code host search."""
    owner: str
    name: str
    clone_url: str
    default_branch: str | None = None
    html_url: str | None = None
    topics: tuple[str, ...] = ()

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True)
class RepositoryContext:
    """Identity and access for one repository's processing session.

    Created by RepositoryContextFactory once per repository per run and owned
    by the worker thread that processes it. ``repo_dir`` is unique per
    repository so no two workers ever share a working tree. ``default_branch``
    is the branch to fetch and to target with pull requests.
    """
    name: str
    owner: str
    clone_url: str
    repo_dir: Path
    logger: "LoggerPort"
    credentials: Credentials
    default_branch: str = "main"

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


class CacheResult(str, Enum):
    SUCCESS = "success"
    ISSUES_FOUND = "issues_found"
    ERROR = "error"


@dataclass(frozen=True)
class CacheEntry:
    """Persisted record of a repository's last-known state."""
    key: str
    sha: str
    timestamp: float  # epoch seconds
    result: CacheResult
    ttl_days: float
    processing_time: float = 0.0

    def age_days(self, now: float) -> float:
        return (now - self.timestamp) / SECONDS_PER_DAY

    def to_dict(self) -> dict[str, Any]:
        return {
            "sha": self.sha,
            "timestamp": self.timestamp,
            "result": self.result.value,
            "ttl_days": self.ttl_days,
            "processing_time": self.processing_time,
        }

    @classmethod
    def from_dict(cls, key: str, data: dict[str, Any]) -> "CacheEntry":
        """Build an entry from its persisted form.

        Raises:
            KeyError, TypeError, ValueError: If the stored data is malformed
        """
        sha = data["sha"]
        if not isinstance(sha, str):
            raise TypeError(f"sha must be a string, got {type(sha).__name__}")
        return cls(
            key=key,
            sha=sha,
            timestamp=float(data["timestamp"]),
            result=CacheResult(data["result"]),
            ttl_days=float(data.get("ttl_days", 0)),
            processing_time=float(data.get("processing_time", 0.0)),
        )


def is_entry_fresh(
    entry: CacheEntry | None,
    current_sha: str,
    ttl_days: float,
    now: float,
) -> bool:
    """Fresh iff the SHA matches and the entry is no older than ``ttl_days``."""
    if entry is None:
        return False
    if entry.sha != current_sha:
        return False
    return now - entry.timestamp <= ttl_days * SECONDS_PER_DAY


@dataclass(frozen=True)
class CacheStats:
    __json_properties__ = ("total", "hit_rate")

    hits: int = 0
    misses: int = 0
    updates: int = 0
    time_saved: float = 0.0
    entry_count: int = 0
    last_updated: str | None = None

    @property
    def total(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Hit rate as a percentage, rounded to two decimals."""
        if self.total == 0:
            return 0.0
        return round(self.hits / self.total * 100, 2)


@dataclass(frozen=True)
class Offense:
    path: str
    cop_name: str
    severity: str
    message: str
    line: int | None
    column: int | None
    correctable: bool


@dataclass(frozen=True)
class FileOffenses:
    path: str
    offenses: tuple[Offense, ...] = ()


@dataclass(frozen=True)
class LintResult:
    """Normalized output of one linter invocation.

    Every offense is either auto-correctable or manual-only, so
    ``auto_correctable_count + manual_only_count == total_count`` always holds.
    ``error`` carries the reason when the linter output could not be parsed.
    """
    files: tuple[FileOffenses, ...] = ()
    error: str | None = None

    @classmethod
    def empty(cls, error: str | None = None) -> "LintResult":
        return cls(files=(), error=error)

    def offenses(self) -> list[Offense]:
        return [o for f in self.files for o in f.offenses]

    def auto_correctable_offenses(self) -> list[Offense]:
        return [o for o in self.offenses() if o.correctable]

    def manual_offenses(self) -> list[Offense]:
        return [o for o in self.offenses() if not o.correctable]

    @property
    def total_count(self) -> int:
        return sum(len(f.offenses) for f in self.files)

    @property
    def auto_correctable_count(self) -> int:
        return len(self.auto_correctable_offenses())

    @property
    def manual_only_count(self) -> int:
        return len(self.manual_offenses())

    @property
    def is_clean(self) -> bool:
        return self.total_count == 0


class ArtifactKind(str, Enum):
    PULL_REQUEST = "pull_request"
    ISSUE = "issue"


@dataclass(frozen=True)
class ArtifactRef:
    """Reference to a pull request or issue on the code host."""
    kind: ArtifactKind
    repo: str
    number: int
    url: str
    title: str = ""
    existing: bool = False


class OutcomeStatus(str, Enum):
    SKIPPED = "skipped"
    NO_ISSUES = "no_issues"
    AUTO_FIXED_PR_CREATED = "auto_fixed_pr_created"
    MANUAL_ISSUE_CREATED = "manual_issue_created"
    ISSUES_FOUND = "issues_found"
    ERROR = "error"


@dataclass(frozen=True)
class ProcessingOutcome:
    """Per-repository result returned to the coordinator."""
    repo: str
    status: OutcomeStatus
    auto_count: int = 0
    manual_count: int = 0
    elapsed: float = 0.0
    error: str | None = None
    artifacts: tuple[ArtifactRef, ...] = ()
    artifact_errors: tuple[str, ...] = ()

    @property
    def pull_request(self) -> ArtifactRef | None:
        for artifact in self.artifacts:
            if artifact.kind is ArtifactKind.PULL_REQUEST:
                return artifact
        return None

    @property
    def issue(self) -> ArtifactRef | None:
        for artifact in self.artifacts:
            if artifact.kind is ArtifactKind.ISSUE:
                return artifact
        return None


@dataclass(frozen=True)
class RunSummary:
    """Run-level aggregation of processing outcomes."""
    __json_properties__ = ("processed_count", "skipped_count", "issues_count", "error_count", "exit_code")

    total_repos: int
    outcomes: tuple[ProcessingOutcome, ...] = ()
    cache_stats: CacheStats | None = None
    elapsed: float = 0.0

    def _count(self, *statuses: OutcomeStatus) -> int:
        return sum(1 for o in self.outcomes if o.status in statuses)

    @property
    def processed_count(self) -> int:
        return len(self.outcomes) - self._count(OutcomeStatus.SKIPPED, OutcomeStatus.ERROR)

    @property
    def skipped_count(self) -> int:
        return self._count(OutcomeStatus.SKIPPED)

    @property
    def issues_count(self) -> int:
        return self._count(
            OutcomeStatus.AUTO_FIXED_PR_CREATED,
            OutcomeStatus.MANUAL_ISSUE_CREATED,
            OutcomeStatus.ISSUES_FOUND,
        )

    @property
    def error_count(self) -> int:
        return self._count(OutcomeStatus.ERROR)

    @property
    def artifacts(self) -> list[ArtifactRef]:
        return [a for o in self.outcomes for a in o.artifacts]

    @property
    def pull_requests(self) -> list[ArtifactRef]:
        return [a for a in self.artifacts if a.kind is ArtifactKind.PULL_REQUEST]

    @property
    def issues(self) -> list[ArtifactRef]:
        return [a for a in self.artifacts if a.kind is ArtifactKind.ISSUE]

    @property
    def artifact_errors(self) -> list[tuple[str, str]]:
        return [(o.repo, err) for o in self.outcomes for err in o.artifact_errors]

    @property
    def exit_code(self) -> int:
        """0 when no repository errored and every artifact was created."""
        if self.error_count or self.artifact_errors:
            return 1
        return 0


@dataclass
class CacheStatus:
    stats: CacheStats
    entries: list[CacheEntry] = field(default_factory=list)
