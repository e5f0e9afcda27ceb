"""CLI output formatting utilities for human-readable display."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Sequence

from ..core.domain.models import ArtifactKind, CacheStatus, RemoteRepository, RunSummary

_SECRET_KEYS = ("token", "private_key")


def format_summary_report(summary: RunSummary) -> str:
    """Plain-text report printed at the end of a run."""
    lines = [
        "--- Summary ---",
        f"Total repositories considered: {summary.total_repos}",
        f"Successfully processed: {summary.processed_count}",
        f"Found issues in: {summary.issues_count} repositories.",
        f"Skipped: {summary.skipped_count} repositories.",
        f"Errors: {summary.error_count} repositories.",
        "",
        "--- Artifact Creation ---",
        f"Issues Created: {len(summary.issues)}",
        f"Pull Requests Created: {len(summary.pull_requests)}",
        f"Artifact Creation Errors: {len(summary.artifact_errors)}",
    ]

    artifacts = summary.artifacts
    lines.append("")
    if artifacts:
        lines.append(f"--- Created Artifacts ({len(artifacts)}) ---")
        for artifact in artifacts:
            kind = "Pull Request" if artifact.kind is ArtifactKind.PULL_REQUEST else "Issue"
            note = " (existing)" if artifact.existing else ""
            lines.extend([
                f"Repository: {artifact.repo}",
                f"Artifact #{artifact.number}: {artifact.title}{note}",
                f"Type: {kind}",
                f"URL: {artifact.url}",
                "",
            ])
    else:
        lines.append("No artifacts were created during this run.")
        lines.append("")

    errored = [o for o in summary.outcomes if o.error]
    if errored:
        lines.append(f"--- Repository Errors ({len(errored)}) ---")
        for outcome in errored:
            lines.append(f"{outcome.repo}: {outcome.error}")
        lines.append("")

    stats = summary.cache_stats
    if stats is not None:
        lines.extend([
            "--- Cache ---",
            f"Hits: {stats.hits}  Misses: {stats.misses}  Hit rate: {stats.hit_rate}%",
            f"Updates: {stats.updates}  Estimated time saved: {stats.time_saved:.1f}s",
        ])

    return "\n".join(lines).rstrip() + "\n"


def format_repository_list(repos: Sequence[RemoteRepository]) -> str:
    """Format the repositories a run would process.

    Args:
        repos: Repositories selected by discovery

    Returns:
        Formatted string for display
    """
    if not repos:
        return "No repositories matched."

    lines = [f"Repositories ({len(repos)}):"]
    for repo in repos:
        topics = f"  [{', '.join(repo.topics)}]" if repo.topics else ""
        lines.append(f"  {repo.full_name}{topics}")
    return "\n".join(lines)


def format_cache_status(status: CacheStatus, *, now: float | None = None) -> str:
    stats = status.stats
    lines = [
        "--- Cache Status ---",
        f"Entries: {stats.entry_count}",
        f"Last updated: {stats.last_updated or 'never'}",
    ]
    if not status.entries:
        lines.append("Cache is empty.")
        return "\n".join(lines)

    lines.append("")
    now = now if now is not None else datetime.now(timezone.utc).timestamp()
    width = max(len(entry.key) for entry in status.entries)
    for entry in status.entries:
        age = entry.age_days(now)
        lines.append(
            f"{entry.key.ljust(width)}  {entry.sha[:12]}  {entry.result.value:<12}  {age:.1f}d old"
        )
    return "\n".join(lines)


def mask_secrets(data: Any) -> Any:
    """Replace credential values with a fixed mask, leaving unset ones as None."""
    if isinstance(data, Mapping):
        masked = {}
        for key, value in data.items():
            if key in _SECRET_KEYS and value:
                masked[key] = "****"
            else:
                masked[key] = mask_secrets(value)
        return masked
    return data


def format_config(data: Mapping[str, Any]) -> str:
    """Render a (masked) config dump as ``section.key = value`` lines."""
    lines = []
    for section, values in data.items():
        if isinstance(values, Mapping):
            for key, value in values.items():
                if isinstance(value, (list, tuple)):
                    value = ",".join(str(v) for v in value)
                lines.append(f"{section}.{key} = {value}")
        else:
            lines.append(f"{section} = {values}")
    return "\n".join(lines)
