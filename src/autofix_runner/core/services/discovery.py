from __future__ import annotations

from typing import Sequence

from ..domain.exceptions import GitHubAPIError, SetupError
from ..domain.models import RemoteRepository
from ..ports import CodeHostPort, LoggerPort, TokenProviderPort


def _matches(repo: RemoteRepository, names: set[str]) -> bool:
    return repo.name.lower() in names or repo.full_name.lower() in names


def filter_repositories(
    repos: Sequence[RemoteRepository],
    *,
    filter_repos: Sequence[str] = (),
    include_repos: Sequence[str] = (),
    exclude_repos: Sequence[str] = (),
) -> list[RemoteRepository]:
    """Narrow a search result down to the repositories to process.

    ``filter_repos`` keeps repositories whose name contains any of the given
    substrings. ``include_repos`` and ``exclude_repos`` match exact names,
    either ``name`` or ``owner/name``. All comparisons ignore case, and
    exclusion wins over inclusion.
    """
    selected = list(repos)

    needles = [f.lower() for f in filter_repos if f]
    if needles:
        selected = [r for r in selected if any(n in r.name.lower() for n in needles)]

    include = {n.lower() for n in include_repos if n}
    if include:
        selected = [r for r in selected if _matches(r, include)]

    exclude = {n.lower() for n in exclude_repos if n}
    if exclude:
        selected = [r for r in selected if not _matches(r, exclude)]

    seen: set[str] = set()
    unique = []
    for repo in selected:
        if repo.full_name not in seen:
            seen.add(repo.full_name)
            unique.append(repo)
    return unique


class RepositoryDiscovery:
    """Finds the repositories for a run: topic search, then name filters.

    Any failure here happens before processing starts and is fatal.
    """

    def __init__(
        self,
        *,
        code_host: CodeHostPort,
        token_provider: TokenProviderPort,
        logger: LoggerPort,
        owner: str | None,
        topics: Sequence[str] = (),
        filter_repos: Sequence[str] = (),
        include_repos: Sequence[str] = (),
        exclude_repos: Sequence[str] = (),
    ) -> None:
        self._code_host = code_host
        self._token_provider = token_provider
        self._logger = logger
        self._owner = owner
        self._topics = tuple(topics)
        self._filter_repos = tuple(filter_repos)
        self._include_repos = tuple(include_repos)
        self._exclude_repos = tuple(exclude_repos)

    def discover(self, only: Sequence[str] | None = None) -> list[RemoteRepository]:
        """Search and filter repositories.

        Args:
            only: Explicit repository names; replaces the configured include list

        Raises:
            SetupError: If the owner is unset, credentials or the API fail,
                or nothing matches
        """
        if not self._owner:
            raise SetupError("No repository owner configured")

        try:
            self._token_provider.token()
            found = self._code_host.search_repositories(self._owner, self._topics)
        except GitHubAPIError as e:
            raise SetupError(f"Repository search failed: {e}") from e

        selected = filter_repositories(
            found,
            filter_repos=self._filter_repos,
            include_repos=tuple(only) if only else self._include_repos,
            exclude_repos=self._exclude_repos,
        )
        self._logger.info(
            "repositories_discovered",
            owner=self._owner,
            topics=list(self._topics),
            found=len(found),
            selected=len(selected),
        )
        if not selected:
            raise SetupError(
                f"No repositories found for owner {self._owner!r} with topics {list(self._topics)}"
            )
        return selected
