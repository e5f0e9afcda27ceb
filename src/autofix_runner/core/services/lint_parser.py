from __future__ import annotations

import json
import logging
from typing import Any

from ..domain.models import FileOffenses, LintResult, Offense

logger = logging.getLogger(__name__)


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    return None


def _parse_offense(path: str, raw: dict[str, Any]) -> Offense:
    location = raw.get("location")
    if not isinstance(location, dict):
        location = {}
    line = _as_int(location.get("start_line")) or _as_int(location.get("line"))
    column = _as_int(location.get("start_column")) or _as_int(location.get("column"))
    return Offense(
        path=path,
        cop_name=str(raw.get("cop_name") or "Unknown"),
        severity=str(raw.get("severity") or "unknown"),
        message=str(raw.get("message") or ""),
        line=line,
        column=column,
        # Only an explicit boolean True counts as auto-correctable
        correctable=raw.get("correctable") is True,
    )


def parse_lint_payload(payload: Any) -> LintResult:
    """Normalize a decoded linter JSON document.

    Raises:
        ValueError: If the document does not have the expected shape
    """
    if not isinstance(payload, dict):
        raise ValueError("linter output is not a JSON object")
    files = payload.get("files")
    if files is None:
        files = []
    if not isinstance(files, list):
        raise ValueError("'files' is not a list")

    parsed: list[FileOffenses] = []
    for raw_file in files:
        if not isinstance(raw_file, dict):
            raise ValueError("file entry is not an object")
        path = str(raw_file.get("path") or "")
        raw_offenses = raw_file.get("offenses") or []
        if not isinstance(raw_offenses, list):
            raise ValueError(f"'offenses' for {path!r} is not a list")
        offenses = tuple(_parse_offense(path, o) for o in raw_offenses if isinstance(o, dict))
        parsed.append(FileOffenses(path=path, offenses=offenses))

    result = LintResult(files=tuple(parsed))

    summary = payload.get("summary")
    if isinstance(summary, dict):
        reported = _as_int(summary.get("offense_count"))
        if reported is not None and reported != result.total_count:
            logger.warning(
                "Linter summary reports %d offenses but %d were parsed",
                reported,
                result.total_count,
            )
    return result


def parse_lint_output(text: str) -> LintResult:
    """Parse raw linter stdout/stderr.

    Never raises: unparsable output yields an empty result carrying ``error``.
    """
    if not text or not text.strip():
        return LintResult.empty(error="linter produced no output")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        return LintResult.empty(error=f"invalid JSON from linter: {e}")
    try:
        return parse_lint_payload(payload)
    except ValueError as e:
        return LintResult.empty(error=f"unexpected linter JSON: {e}")
