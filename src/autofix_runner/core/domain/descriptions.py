"""Markdown bodies for pull requests and issues."""

from __future__ import annotations

from .models import LintResult, Offense


def _one_line(message: str) -> str:
    text = " ".join(line.strip() for line in message.splitlines() if line.strip())
    return text or "No message"


def format_auto_offense(offense: Offense) -> str:
    return f"* {offense.path}:{_one_line(offense.message)}"


def format_manual_offense(offense: Offense) -> str:
    location = f"`{offense.path}`"
    if offense.line is not None:
        location = f"`{offense.path}:{offense.line}`"
    return f"* {location}:{offense.cop_name} - {_one_line(offense.message)}"


def build_pr_description(result: LintResult, *, tool_name: str = "Cookstyle") -> str:
    """Pull request body: run summary plus the auto-corrected offenses."""
    lines = [
        f"### {tool_name} Run Summary",
        f"- **Total Offenses Detected:** {result.total_count}",
        f"- **Auto-corrected:** {result.auto_correctable_count}",
        f"- **Manual Review Needed:** {result.manual_only_count}",
    ]

    auto = result.auto_correctable_offenses()
    if auto:
        lines.append("")
        lines.append("### Offences")
        lines.extend(format_auto_offense(o) for o in auto)

    if result.manual_only_count:
        lines.append("")
        lines.append(
            f"{result.manual_only_count} offense(s) could not be corrected automatically "
            "and are tracked in a separate issue."
        )

    return "\n".join(lines)


def build_issue_description(result: LintResult, *, tool_name: str = "Cookstyle") -> str:
    """Issue body listing only the offenses that need a human."""
    manual = result.manual_offenses()
    if not manual:
        return ""

    lines = [
        f"### {tool_name} Manual Review Summary",
        f"- **Total Offenses Detected:** {result.total_count}",
        f"- **Manual Review Needed:** {len(manual)}",
        "",
        "### Manual Intervention Required",
    ]
    lines.extend(format_manual_offense(o) for o in manual)
    return "\n".join(lines)
