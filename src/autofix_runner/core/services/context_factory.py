from __future__ import annotations

from pathlib import Path
from urllib.parse import urlparse

from ..domain.credentials import Credentials
from ..domain.models import RepositoryContext
from ..ports import LoggerPort


def parse_repo_url(repo_url: str) -> tuple[str, str]:
    """Split a clone URL or ``owner/name`` slug into (owner, name)."""
    raw = repo_url.strip().rstrip("/")
    if raw.startswith("git@") and ":" in raw:
        path = raw.split(":", 1)[1]
    elif "://" in raw:
        path = urlparse(raw).path
    else:
        path = raw
    parts = [p for p in path.split("/") if p]
    if len(parts) < 2:
        raise ValueError(f"Cannot determine owner/name from {repo_url!r}")
    owner, name = parts[-2], parts[-1]
    if name.endswith(".git"):
        name = name[:-4]
    return owner, name


class RepositoryContextFactory:
    """Builds one RepositoryContext per repository, each with its own directory."""

    def __init__(
        self,
        *,
        workspace_dir: Path,
        credentials: Credentials,
        logger: LoggerPort,
        default_branch: str = "main",
    ) -> None:
        self._workspace_dir = Path(workspace_dir)
        self._credentials = credentials
        self._logger = logger
        self._default_branch = default_branch

    def create(self, repo_url: str, default_branch: str | None = None) -> RepositoryContext:
        """``default_branch`` comes from the code host; when it is unknown the
        configured branch is used instead.
        """
        owner, name = parse_repo_url(repo_url)
        return RepositoryContext(
            name=name,
            owner=owner,
            clone_url=repo_url,
            repo_dir=self._workspace_dir / owner / name,
            logger=self._logger.bind(repo=f"{owner}/{name}"),
            credentials=self._credentials,
            default_branch=default_branch or self._default_branch,
        )
