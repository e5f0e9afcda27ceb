from __future__ import annotations

import re
from pathlib import Path

from git import Actor, GitCommandError, Repo

from ..core.domain.exceptions import GitOperationError
from ..core.domain.models import RepositoryContext
from ..core.ports import TokenProviderPort
from ..shared.rmtree_force import rmtree_force

_CREDENTIALS_IN_URL = re.compile(r"(https?://)[^@/\s]+@")


def scrub_credentials(text: str) -> str:
    """Hide credentials embedded in remote URLs."""
    return _CREDENTIALS_IN_URL.sub(r"\1***@", text)


class GitRepository:
    """GitPython adapter for one working tree per repository.

    Remote URLs always come from the token provider so that credentials are
    resolved per call and never read from the context.
    """

    def __init__(
        self,
        *,
        token_provider: TokenProviderPort,
        author_name: str,
        author_email: str,
        timeout: float = 600,
    ) -> None:
        self._token_provider = token_provider
        self._author = Actor(author_name, author_email)
        self._timeout = timeout

    def _remote_url(self, ctx: RepositoryContext) -> str:
        return self._token_provider.authenticated_url(ctx.owner, ctx.name)

    def _fail(self, operation: str, e: GitCommandError) -> GitOperationError:
        return GitOperationError(operation, scrub_credentials(str(e)))

    def _remote_head_branch(self, repo: Repo) -> str | None:
        """Branch the remote's HEAD points at, or None when it cannot be told."""
        try:
            listing = repo.git.ls_remote("--symref", "origin", "HEAD", kill_after_timeout=self._timeout)
        except GitCommandError:
            return None
        for line in listing.splitlines():
            if line.startswith("ref: refs/heads/"):
                return line[len("ref: refs/heads/"):].split("\t", 1)[0].strip() or None
        return None

    def _fetch(self, repo: Repo, branch: str) -> None:
        repo.git.fetch("origin", branch, depth=1, kill_after_timeout=self._timeout)

    def clone_or_update(self, ctx: RepositoryContext, branch: str) -> str:
        """Shallow, single-branch checkout of ``branch`` into ``ctx.repo_dir``.

        An existing clone is fetched and hard-reset to the remote branch; a
        missing or broken one is replaced with a fresh clone. When the remote
        has no ``branch`` the branch its HEAD points at is used instead.

        Returns:
            The branch that was checked out
        """
        url = self._remote_url(ctx)
        repo_dir = ctx.repo_dir
        if not (repo_dir / ".git").is_dir():
            rmtree_force(repo_dir)
            repo_dir.mkdir(parents=True, exist_ok=True)
            Repo.init(repo_dir).close()

        try:
            with Repo(repo_dir) as repo:
                if "origin" in [r.name for r in repo.remotes]:
                    repo.remote("origin").set_url(url)
                else:
                    repo.create_remote("origin", url)
                try:
                    self._fetch(repo, branch)
                except GitCommandError:
                    fallback = self._remote_head_branch(repo)
                    if fallback is None or fallback == branch:
                        raise
                    ctx.logger.warning("default_branch_missing", requested=branch, using=fallback)
                    branch = fallback
                    self._fetch(repo, branch)
                repo.git.checkout("-B", branch, f"origin/{branch}")
                repo.git.reset("--hard", f"origin/{branch}")
                repo.git.clean("-fdx")
        except GitCommandError as e:
            raise self._fail("clone", e) from None
        return branch

    def current_sha(self, ctx: RepositoryContext) -> str:
        with Repo(ctx.repo_dir) as repo:
            return repo.head.commit.hexsha

    def reset_branch(self, ctx: RepositoryContext, branch: str) -> None:
        try:
            with Repo(ctx.repo_dir) as repo:
                base = repo.head.commit
                if branch in [h.name for h in repo.heads]:
                    if not repo.head.is_detached and repo.active_branch.name == branch:
                        repo.git.checkout("--detach")
                    repo.delete_head(branch, force=True)
                repo.create_head(branch, base).checkout()
        except GitCommandError as e:
            raise self._fail("branch", e) from None

    def has_changes(self, repo_dir: Path) -> bool:
        with Repo(repo_dir) as repo:
            status = repo.git(c="core.fileMode=false").status("--porcelain", "--untracked-files=all")
        return bool(status.strip())

    def commit_all(self, ctx: RepositoryContext, message: str) -> str:
        try:
            with Repo(ctx.repo_dir) as repo:
                # stage content only; executable-bit flips stay out of the commit
                repo.git(c="core.fileMode=false").add(A=True)
                commit = repo.index.commit(message, author=self._author, committer=self._author)
                return commit.hexsha
        except GitCommandError as e:
            raise self._fail("commit", e) from None

    def push_branch(self, ctx: RepositoryContext, branch: str) -> None:
        url = self._remote_url(ctx)
        try:
            with Repo(ctx.repo_dir) as repo:
                repo.git.push("--force", url, f"HEAD:refs/heads/{branch}", kill_after_timeout=self._timeout)
        except GitCommandError as e:
            raise self._fail("push", e) from None

    def cleanup(self, ctx: RepositoryContext) -> None:
        rmtree_force(ctx.repo_dir)
