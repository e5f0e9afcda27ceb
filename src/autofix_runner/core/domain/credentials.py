from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Union

from .exceptions import SetupError

logger = logging.getLogger(__name__)

PEM_MARKER = "-----BEGIN"


@dataclass(frozen=True)
class PatCredentials:
    """Personal access token."""
    token: str = field(repr=False)
    auth_type: Literal["pat"] = "pat"


@dataclass(frozen=True)
class AppCredentials:
    """GitHub App identity used to mint installation tokens."""
    app_id: str
    installation_id: int
    private_key: str = field(repr=False)
    auth_type: Literal["app"] = "app"


Credentials = Union[PatCredentials, AppCredentials]


def _load_private_key(value: str) -> str:
    """Accept either PEM text or a path to a PEM file."""
    if PEM_MARKER in value:
        return value
    path = Path(value).expanduser()
    if not path.is_file():
        raise SetupError(
            "GitHub App private key is neither PEM content nor a readable file path"
        )
    content = path.read_text(encoding="utf-8")
    if PEM_MARKER not in content:
        raise SetupError(f"GitHub App private key file does not contain a PEM key: {path}")
    return content


def resolve_credentials(
    *,
    token: str | None = None,
    app_id: str | None = None,
    installation_id: str | int | None = None,
    private_key: str | None = None,
) -> Credentials:
    """Pick the authentication method once, at startup.

    A non-empty token selects PAT auth. Otherwise all three App fields must be
    present and well-formed.

    Raises:
        SetupError: If neither method is configured or the chosen one is malformed
    """
    app_fields = {
        "app_id": app_id,
        "installation_id": installation_id,
        "private_key": private_key,
    }
    app_given = {k for k, v in app_fields.items() if v not in (None, "")}

    if token is not None:
        if not token.strip():
            raise SetupError("GitHub token is set but empty")
        if app_given:
            logger.warning("Both a GitHub token and GitHub App settings are configured; using the token")
        return PatCredentials(token=token.strip())

    if not app_given:
        raise SetupError(
            "No GitHub credentials configured: set a token or app_id, installation_id and private_key"
        )

    missing = sorted(set(app_fields) - app_given)
    if missing:
        raise SetupError(f"Incomplete GitHub App credentials, missing: {', '.join(missing)}")

    try:
        parsed_installation_id = int(str(installation_id).strip())
    except ValueError:
        raise SetupError(f"GitHub App installation_id must be an integer, got {installation_id!r}") from None

    return AppCredentials(
        app_id=str(app_id).strip(),
        installation_id=parsed_installation_id,
        private_key=_load_private_key(str(private_key)),
    )
