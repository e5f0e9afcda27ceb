"""Access tokens for git and the GitHub API.

Personal access tokens are used as-is. GitHub App credentials are exchanged
for short-lived installation tokens, which are cached until shortly before
they expire.
"""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime
from typing import Callable

import httpx
import jwt

from ...core.domain.credentials import AppCredentials, Credentials, PatCredentials
from ...core.domain.exceptions import GitHubAPIError

logger = logging.getLogger(__name__)

JWT_EXPIRATION_SECONDS = 600
# Refresh installation tokens this long before GitHub expires them
TOKEN_REFRESH_MARGIN_SECONDS = 300
DEFAULT_INSTALLATION_TOKEN_TTL = 3600


def generate_app_jwt(app_id: str, private_key: str, *, now: float | None = None) -> str:
    """Sign the RS256 JWT that authenticates as the GitHub App itself."""
    issued_at = int(time.time() if now is None else now)
    payload = {
        "iat": issued_at,
        "exp": issued_at + JWT_EXPIRATION_SECONDS,
        "iss": app_id,
    }
    return jwt.encode(payload, private_key, algorithm="RS256")


class TokenProvider:
    def __init__(
        self,
        *,
        credentials: Credentials,
        api_url: str = "https://api.github.com",
        host: str = "github.com",
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._credentials = credentials
        self._api_url = api_url.rstrip("/")
        self._host = host
        self._timeout = timeout
        self._transport = transport
        self._clock = clock
        self._lock = threading.Lock()
        self._cached_token: str | None = None
        self._expires_at = 0.0

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    def token(self) -> str:
        """Return a token valid for at least the refresh margin.

        Raises:
            GitHubAPIError: If an installation token cannot be obtained
        """
        creds = self._credentials
        if isinstance(creds, PatCredentials):
            return creds.token

        with self._lock:
            now = self._clock()
            if self._cached_token is None or now >= self._expires_at - TOKEN_REFRESH_MARGIN_SECONDS:
                self._cached_token, self._expires_at = self._fetch_installation_token(creds, now)
            return self._cached_token

    def authenticated_url(self, owner: str, name: str) -> str:
        token = self.token()
        if isinstance(self._credentials, PatCredentials):
            userinfo = f"{token}:x-oauth-basic"
        else:
            userinfo = f"x-access-token:{token}"
        return f"https://{userinfo}@{self._host}/{owner}/{name}.git"

    def _fetch_installation_token(self, creds: AppCredentials, now: float) -> tuple[str, float]:
        app_jwt = generate_app_jwt(creds.app_id, creds.private_key, now=now)
        url = f"{self._api_url}/app/installations/{creds.installation_id}/access_tokens"
        headers = {
            "Authorization": f"Bearer {app_jwt}",
            "Accept": "application/vnd.github+json",
        }
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.post(url, headers=headers)
        except httpx.HTTPError as e:
            raise GitHubAPIError(f"installation token request failed: {e}") from e

        if response.status_code != 201:
            raise GitHubAPIError(
                f"installation token request returned {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        data = response.json()
        token = data.get("token")
        if not isinstance(token, str) or not token:
            raise GitHubAPIError("installation token response did not contain a token")

        expires_at = now + DEFAULT_INSTALLATION_TOKEN_TTL
        raw_expiry = data.get("expires_at")
        if isinstance(raw_expiry, str):
            try:
                expires_at = datetime.fromisoformat(raw_expiry.replace("Z", "+00:00")).timestamp()
            except ValueError:
                logger.warning("Unparsable installation token expiry %r, assuming one hour", raw_expiry)

        logger.info("Obtained installation token for app %s (installation %s)", creds.app_id, creds.installation_id)
        return token, expires_at
