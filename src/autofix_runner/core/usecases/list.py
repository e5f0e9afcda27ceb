from __future__ import annotations

from typing import Sequence

from ..domain.models import RemoteRepository
from ..services import RepositoryDiscovery


class ListRepositoriesUseCase:
    def __init__(self, *, discovery: RepositoryDiscovery) -> None:
        self._discovery = discovery

    def execute(self, repos: Sequence[str] | None = None) -> list[RemoteRepository]:
        """Repositories a run would process, sorted by full name."""
        return sorted(self._discovery.discover(only=repos), key=lambda r: r.full_name.lower())
