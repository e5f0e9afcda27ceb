from __future__ import annotations

from typing import Sequence

from ..domain.exceptions import ArtifactError, GitHubAPIError
from ..domain.models import ArtifactKind, ArtifactRef
from ..ports import CodeHostPort, LoggerPort


class ArtifactManager:
    """Creates pull requests and issues, reusing open ones where possible.

    Pull requests are deduplicated by head branch. Issues are deduplicated by
    title among open issues when ``dedupe_issues`` is on. A reused PR or issue
    is rewritten with the latest findings, the PR title included. Every code
    host failure is raised as ArtifactError carrying the repository name.
    """

    def __init__(
        self,
        *,
        code_host: CodeHostPort,
        logger: LoggerPort,
        labels: Sequence[str] = (),
        dedupe_issues: bool = True,
    ) -> None:
        self._code_host = code_host
        self._logger = logger
        self._labels = tuple(labels)
        self._dedupe_issues = dedupe_issues

    @staticmethod
    def _head(repo: str, branch: str) -> str:
        owner = repo.split("/", 1)[0]
        return f"{owner}:{branch}"

    def find_existing_open_pr(self, repo: str, branch: str) -> ArtifactRef | None:
        try:
            pulls = self._code_host.list_open_pull_requests(repo, head=self._head(repo, branch))
        except GitHubAPIError as e:
            raise ArtifactError(repo, ArtifactKind.PULL_REQUEST.value, f"lookup failed: {e}") from e
        return pulls[0] if pulls else None

    def create_pull_request(
        self,
        repo: str,
        branch: str,
        title: str,
        body: str,
        *,
        base: str = "main",
    ) -> ArtifactRef:
        """Open a PR from ``branch``, or refresh the one already open for it."""
        existing = self.find_existing_open_pr(repo, branch)
        kind = ArtifactKind.PULL_REQUEST.value

        if existing is not None:
            try:
                ref = self._code_host.update_pull_request(repo, existing.number, body=body, title=title)
            except GitHubAPIError as e:
                raise ArtifactError(repo, kind, f"update of #{existing.number} failed: {e}") from e
            self._logger.info("pr_updated", repo=repo, number=ref.number, url=ref.url)
            self._apply_labels(repo, ref)
            return ArtifactRef(
                kind=ArtifactKind.PULL_REQUEST,
                repo=repo,
                number=existing.number,
                url=ref.url or existing.url,
                title=ref.title or existing.title,
                existing=True,
            )

        try:
            ref = self._code_host.create_pull_request(repo, title=title, head=branch, base=base, body=body)
        except GitHubAPIError as e:
            raise ArtifactError(repo, kind, str(e)) from e
        self._logger.info("pr_created", repo=repo, number=ref.number, url=ref.url)
        self._apply_labels(repo, ref)
        return ref

    def find_existing_open_issue(self, repo: str, title: str) -> ArtifactRef | None:
        try:
            issues = self._code_host.list_open_issues(repo)
        except GitHubAPIError as e:
            raise ArtifactError(repo, ArtifactKind.ISSUE.value, f"lookup failed: {e}") from e
        for issue in issues:
            if issue.title == title:
                return issue
        return None

    def create_issue(self, repo: str, title: str, body: str) -> ArtifactRef:
        kind = ArtifactKind.ISSUE.value
        if self._dedupe_issues:
            existing = self.find_existing_open_issue(repo, title)
            if existing is not None:
                return self._refresh_issue(repo, existing, body)

        try:
            ref = self._code_host.create_issue(repo, title=title, body=body)
        except GitHubAPIError as e:
            raise ArtifactError(repo, kind, str(e)) from e
        self._logger.info("issue_created", repo=repo, number=ref.number, url=ref.url)
        self._apply_labels(repo, ref)
        return ref

    def _refresh_issue(self, repo: str, existing: ArtifactRef, body: str) -> ArtifactRef:
        """Replace the body of an already open issue with the current findings."""
        try:
            ref = self._code_host.update_issue(repo, existing.number, body=body)
        except GitHubAPIError as e:
            raise ArtifactError(repo, ArtifactKind.ISSUE.value, f"update of #{existing.number} failed: {e}") from e
        self._logger.info("issue_updated", repo=repo, number=existing.number, url=ref.url or existing.url)
        self._apply_labels(repo, existing)
        return ArtifactRef(
            kind=ArtifactKind.ISSUE,
            repo=repo,
            number=existing.number,
            url=ref.url or existing.url,
            title=ref.title or existing.title,
            existing=True,
        )

    def _apply_labels(self, repo: str, ref: ArtifactRef) -> None:
        if not self._labels:
            return
        try:
            self._code_host.add_labels(repo, ref.number, self._labels)
        except GitHubAPIError as e:
            self._logger.warning(
                "labels_not_applied",
                repo=repo,
                number=ref.number,
                labels=list(self._labels),
                error=str(e),
            )
