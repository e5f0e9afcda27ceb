from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from dependency_injector.resources import Resource

from .formatters import STANDARD_RECORD_ATTRS
from .handlers import build_human_console_handler, build_json_file_handler


def _safe_extra(fields: dict[str, Any]) -> dict[str, Any]:
    """Rename keys that would clash with LogRecord attributes (``name``, ``args``, ...)."""
    return {(f"{k}_" if k in STANDARD_RECORD_ATTRS else k): v for k, v in fields.items()}


class BoundLogger:
    """Logger handle that stamps fixed fields onto every record.

    Handed to each repository via its RepositoryContext, bound to ``repo``.
    """

    def __init__(self, logger: logging.Logger, fields: dict[str, Any] | None = None) -> None:
        self._logger = logger
        self._fields = dict(fields or {})

    def _log(self, level: int, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        merged = {**self._fields, **kwargs}
        if merged:
            self._logger.log(level, message, extra=_safe_extra(merged), exc_info=exc_info)
        else:
            self._logger.log(level, message, exc_info=exc_info)

    def bind(self, **fields: Any) -> "BoundLogger":
        return BoundLogger(self._logger, {**self._fields, **fields})

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, exc_info=exc_info, **kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, exc_info=True, **kwargs)


class RunLogger(Resource):
    """Structured logger for a processing run.

    Writes JSON lines to ``logs_dir/<log_name>.jsonl`` and, optionally,
    human-readable lines to the console.
    """

    def init(
        self,
        *,
        logs_dir: Path,
        logger_name: str = "autofix_runner",
        log_name: str = "autofix_runner",
        json_file: bool = True,
        console_output: bool = False,
        level: str = "INFO",
    ) -> BoundLogger:
        """Configure handlers and return the root BoundLogger.

        Args:
            logs_dir: Directory to store log files
            logger_name: Name of the stdlib logger to configure
            log_name: JSONL file stem
            json_file: Whether to write the JSONL file
            console_output: Whether to enable console output
            level: Logging level (DEBUG, INFO, WARNING, ERROR)
        """
        numeric_level = getattr(logging, level.upper())
        self._logger = logging.getLogger(logger_name)
        self._previous = (self._logger.level, self._logger.propagate)
        self._logger.setLevel(numeric_level)
        self._logger.propagate = False

        self._logger.handlers.clear()
        self._handlers: list[logging.Handler] = []

        if json_file:
            handler = build_json_file_handler(logs_dir / f"{log_name}.jsonl", level=numeric_level)
            self._logger.addHandler(handler)
            self._handlers.append(handler)

        if console_output:
            handler = build_human_console_handler(level=numeric_level)
            self._logger.addHandler(handler)
            self._handlers.append(handler)

        return BoundLogger(self._logger)

    def shutdown(self, resource: BoundLogger) -> None:
        """Close handlers so log files are released, then restore the stdlib logger."""
        for handler in self._handlers:
            handler.flush()
            handler.close()
        self._logger.handlers.clear()
        self._logger.setLevel(self._previous[0])
        self._logger.propagate = self._previous[1]
