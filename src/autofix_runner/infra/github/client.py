from __future__ import annotations

import logging
import time
from typing import Any, Callable, Iterator, Sequence

import httpx

from ...core.domain.exceptions import GitHubAPIError, GitHubRateLimitError, GitHubServerError
from ...core.domain.models import ArtifactKind, ArtifactRef, RemoteRepository
from ...core.ports import TokenProviderPort
from .retry import create_github_retry_policy

logger = logging.getLogger(__name__)

API_VERSION = "2022-11-28"
PER_PAGE = 100


def _retry_after_seconds(response: httpx.Response, now: float) -> float | None:
    retry_after = response.headers.get("Retry-After")
    if retry_after is not None:
        try:
            return float(retry_after)
        except ValueError:
            pass
    reset = response.headers.get("X-RateLimit-Reset")
    if reset is not None:
        try:
            return max(float(reset) - now, 0.0)
        except ValueError:
            pass
    return None


def _is_rate_limited(response: httpx.Response) -> bool:
    if response.status_code == 429:
        return True
    if response.status_code == 403:
        if response.headers.get("X-RateLimit-Remaining") == "0":
            return True
        return "rate limit" in response.text.lower()
    return False


def raise_for_github_status(response: httpx.Response, now: float | None = None) -> None:
    """Map an unsuccessful response onto the GitHubAPIError hierarchy."""
    if response.is_success:
        return
    message = f"{response.request.method} {response.request.url.path} returned {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        body = None
    detail = body.get("message") if isinstance(body, dict) else None
    if detail:
        message = f"{message}: {detail}"

    if _is_rate_limited(response):
        raise GitHubRateLimitError(
            message,
            status_code=response.status_code,
            retry_after=_retry_after_seconds(response, time.time() if now is None else now),
        )
    if response.status_code >= 500:
        raise GitHubServerError(message, status_code=response.status_code)
    raise GitHubAPIError(message, status_code=response.status_code)


def _next_link(response: httpx.Response) -> str | None:
    link = response.links.get("next")
    return link.get("url") if link else None


def _to_pull_request(repo: str, data: dict[str, Any], existing: bool = False) -> ArtifactRef:
    return ArtifactRef(
        kind=ArtifactKind.PULL_REQUEST,
        repo=repo,
        number=int(data["number"]),
        url=str(data.get("html_url") or data.get("url") or ""),
        title=str(data.get("title") or ""),
        existing=existing,
    )


def _to_issue(repo: str, data: dict[str, Any], existing: bool = False) -> ArtifactRef:
    return ArtifactRef(
        kind=ArtifactKind.ISSUE,
        repo=repo,
        number=int(data["number"]),
        url=str(data.get("html_url") or data.get("url") or ""),
        title=str(data.get("title") or ""),
        existing=existing,
    )


class GitHubClient:
    """Minimal GitHub REST client over httpx.

    Every call re-reads the token from the token provider, so App
    installation tokens are refreshed transparently. Transient failures are
    retried; everything else surfaces as GitHubAPIError.
    """

    def __init__(
        self,
        *,
        token_provider: TokenProviderPort,
        api_url: str = "https://api.github.com",
        timeout: float = 30.0,
        max_retries: int = 3,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._token_provider = token_provider
        self._http = httpx.Client(
            base_url=api_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": API_VERSION,
                "User-Agent": "autofix-runner",
            },
        )
        self._retrying = create_github_retry_policy(max_attempts=max_retries, sleep=sleep)
        self._retrying_rate_limit_only = create_github_retry_policy(
            max_attempts=max_retries, retry_server_errors=False, sleep=sleep
        )

    def close(self) -> None:
        self._http.close()

    def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self._token_provider.token()}"}
        response = self._http.request(method, url, headers=headers, **kwargs)
        raise_for_github_status(response)
        return response

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        policy = self._retrying if method in ("GET", "PATCH") else self._retrying_rate_limit_only
        try:
            return policy(self._send)(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise GitHubAPIError(f"{method} {url} failed: {e}") from e

    def _paginate(
        self,
        path: str,
        params: dict[str, Any],
        item_key: str | None = None,
    ) -> Iterator[dict[str, Any]]:
        url: str | None = path
        query: dict[str, Any] | None = {**params, "per_page": PER_PAGE}
        while url:
            response = self._request("GET", url, params=query)
            data = response.json()
            items = data.get(item_key, []) if item_key else data
            yield from items
            url = _next_link(response)
            # the next link already carries the query string
            query = None

    def search_repositories(self, owner: str, topics: Sequence[str]) -> list[RemoteRepository]:
        query = " ".join([f"org:{owner}", *(f"topic:{t}" for t in topics)])
        repos = []
        for item in self._paginate("/search/repositories", {"q": query}, item_key="items"):
            repos.append(
                RemoteRepository(
                    owner=item["owner"]["login"],
                    name=item["name"],
                    clone_url=item.get("clone_url") or item.get("html_url") or "",
                    default_branch=item.get("default_branch"),
                    html_url=item.get("html_url"),
                    topics=tuple(item.get("topics") or ()),
                )
            )
        logger.debug("Repository search %r returned %d results", query, len(repos))
        return repos

    def list_open_pull_requests(self, repo: str, *, head: str) -> list[ArtifactRef]:
        items = self._paginate(f"/repos/{repo}/pulls", {"state": "open", "head": head})
        return [_to_pull_request(repo, item, existing=True) for item in items]

    def create_pull_request(
        self, repo: str, *, title: str, head: str, base: str, body: str
    ) -> ArtifactRef:
        response = self._request(
            "POST",
            f"/repos/{repo}/pulls",
            json={"title": title, "head": head, "base": base, "body": body},
        )
        return _to_pull_request(repo, response.json())

    def update_pull_request(
        self, repo: str, number: int, *, body: str, title: str | None = None
    ) -> ArtifactRef:
        payload = {"body": body}
        if title is not None:
            payload["title"] = title
        response = self._request("PATCH", f"/repos/{repo}/pulls/{number}", json=payload)
        return _to_pull_request(repo, response.json(), existing=True)

    def list_open_issues(self, repo: str) -> list[ArtifactRef]:
        items = self._paginate(f"/repos/{repo}/issues", {"state": "open"})
        # the issues endpoint also returns pull requests
        return [_to_issue(repo, item, existing=True) for item in items if "pull_request" not in item]

    def create_issue(self, repo: str, *, title: str, body: str) -> ArtifactRef:
        response = self._request("POST", f"/repos/{repo}/issues", json={"title": title, "body": body})
        return _to_issue(repo, response.json())

    def update_issue(self, repo: str, number: int, *, body: str) -> ArtifactRef:
        response = self._request("PATCH", f"/repos/{repo}/issues/{number}", json={"body": body})
        return _to_issue(repo, response.json(), existing=True)

    def add_labels(self, repo: str, number: int, labels: Sequence[str]) -> None:
        if not labels:
            return
        self._request("POST", f"/repos/{repo}/issues/{number}/labels", json={"labels": list(labels)})
