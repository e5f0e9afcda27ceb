from __future__ import annotations

from .lint_parser import parse_lint_output, parse_lint_payload
from .lint_engine import LintEngine
from .artifact_manager import ArtifactManager
from .context_factory import RepositoryContextFactory, parse_repo_url
from .repository_processor import ProcessingState, ProcessorSettings, RepositoryProcessor
from .coordinator import ConcurrencyCoordinator
from .discovery import RepositoryDiscovery, filter_repositories

__all__ = [
    "parse_lint_output",
    "parse_lint_payload",
    "LintEngine",
    "ArtifactManager",
    "RepositoryContextFactory",
    "parse_repo_url",
    "ProcessingState",
    "ProcessorSettings",
    "RepositoryProcessor",
    "ConcurrencyCoordinator",
    "RepositoryDiscovery",
    "filter_repositories",
]
