from __future__ import annotations

from typing import Sequence

from .config import AppConfig
from .container import Container
from ..core.domain.models import CacheStatus, RemoteRepository, RunSummary


def _create_container(config: AppConfig | None = None) -> Container:
    """Create and initialize a container.

    Args:
        config: Optional config. If None, loads from environment variables.

    Returns:
        Initialized container instance
    """
    container = Container()

    if config is None:
        config = AppConfig()

    container.config.from_pydantic(config)
    container.init_resources()

    return container


def run(
    repos: Sequence[str] | None = None,
    *,
    config: AppConfig | None = None,
) -> RunSummary:
    """Process every selected repository and return the run summary.

    Args:
        repos: Optional repository names restricting the run
        config: Optional config for testing. If None, loads from env vars.

    Raises:
        SetupError: If credentials, the API or repository discovery fail
    """
    container = _create_container(config)
    try:
        return container.run_uc().execute(repos)
    finally:
        container.shutdown_resources()


def list_repositories(
    repos: Sequence[str] | None = None,
    *,
    config: AppConfig | None = None,
) -> list[RemoteRepository]:
    """Repositories a run would process."""
    container = _create_container(config)
    try:
        return container.list_uc().execute(repos)
    finally:
        container.shutdown_resources()


def cache_status(config: AppConfig | None = None) -> CacheStatus:
    container = _create_container(config)
    try:
        return container.cache_status_uc().execute()
    finally:
        container.shutdown_resources()


def clear_cache(repo: str | None = None, config: AppConfig | None = None) -> None:
    """Drop one cache entry (``owner/name``) or the whole cache."""
    container = _create_container(config)
    try:
        container.clear_cache_uc().execute(repo)
    finally:
        container.shutdown_resources()
