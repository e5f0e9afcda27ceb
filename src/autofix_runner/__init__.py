from .app.main import run, list_repositories, cache_status, clear_cache

__version__ = "0.1.0"

__all__ = [
    "run",
    "list_repositories",
    "cache_status",
    "clear_cache",
    "__version__",
]

# stdlib logging defaults: attach NullHandler to prevent 'No handler' warnings
import logging
_logger = logging.getLogger(__name__)
_logger.addHandler(logging.NullHandler())
