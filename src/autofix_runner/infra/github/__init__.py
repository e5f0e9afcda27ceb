from __future__ import annotations

from .auth import TokenProvider, generate_app_jwt
from .client import GitHubClient
from .retry import create_github_retry_policy

__all__ = [
    "TokenProvider",
    "generate_app_jwt",
    "GitHubClient",
    "create_github_retry_policy",
]
