from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TextIO

from .formatters import HumanReadableFormatter, JSONFormatter


def build_json_file_handler(path: Path, level: int = logging.INFO) -> logging.Handler:
    """JSON-lines handler appending to ``path``.

    Opening is delayed until the first record so a run that logs nothing
    leaves no empty file behind.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, mode="a", encoding="utf-8", delay=True)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter())
    return handler


def build_human_console_handler(level: int = logging.INFO, stream: TextIO | None = None) -> logging.Handler:
    # stderr keeps stdout free for --json output
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(HumanReadableFormatter())
    return handler
