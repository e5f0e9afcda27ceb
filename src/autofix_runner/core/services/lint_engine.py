from __future__ import annotations

from pathlib import Path

from ..domain.exceptions import CommandError
from ..domain.models import LintResult
from ..ports import CommandRunnerPort, GitPort, LoggerPort
from .lint_parser import parse_lint_output

RAW_OUTPUT_LOG_LIMIT = 2000

# Exit codes the linter uses for "ran fine": 0 = clean, 1 = offenses remain
AUTOCORRECT_OK_EXIT_CODES = frozenset({0, 1})


class LintEngine:
    """Runs the linter in check mode and in autocorrect mode.

    The check run is non-mutating and machine readable. A non-zero exit with
    valid JSON means offenses were found, not that the tool failed.
    """

    def __init__(
        self,
        *,
        runner: CommandRunnerPort,
        git: GitPort,
        logger: LoggerPort,
        command: str = "cookstyle",
        timeout: float = 300,
    ) -> None:
        self._runner = runner
        self._git = git
        self._logger = logger
        self._command = command
        self._timeout = timeout

    @property
    def check_args(self) -> list[str]:
        return [self._command, "--display-cop-names", "--format", "json"]

    @property
    def autocorrect_args(self) -> list[str]:
        return [self._command, "--autocorrect-all"]

    def check(self, repo_dir: Path) -> LintResult:
        """Run the linter without touching files.

        Returns:
            Parsed result. Unparsable output gives an empty result with
            ``error`` set instead of raising.

        Raises:
            CommandError: On timeout or if the linter cannot be started
        """
        completed = self._runner.run(self.check_args, cwd=repo_dir, timeout=self._timeout)

        if completed.exit_code == 0:
            result = parse_lint_output(completed.stdout)
            if result.error is not None:
                # exit 0 means no offenses, whatever the tool printed
                result = LintResult.empty()
        else:
            result = parse_lint_output(completed.stdout)
            if result.error is not None and completed.stderr.strip():
                result = parse_lint_output(completed.stderr)

        if result.error is not None:
            raw = (completed.stdout + "\n" + completed.stderr).strip()
            self._logger.error(
                "lint_output_unparsable",
                repo_dir=str(repo_dir),
                exit_code=completed.exit_code,
                error=result.error,
                raw_output=raw[:RAW_OUTPUT_LOG_LIMIT],
            )
            return result

        self._logger.debug(
            "lint_checked",
            repo_dir=str(repo_dir),
            exit_code=completed.exit_code,
            total=result.total_count,
            auto_correctable=result.auto_correctable_count,
            manual=result.manual_only_count,
        )
        return result

    def autocorrect(self, repo_dir: Path) -> bool:
        """Run the linter in mutating mode.

        Returns:
            Whether the working tree actually changed. A successful run that
            only flips file modes, or changes nothing, returns False.

        Raises:
            CommandError: On timeout or an unexpected exit code
        """
        completed = self._runner.run(self.autocorrect_args, cwd=repo_dir, timeout=self._timeout)
        if completed.exit_code not in AUTOCORRECT_OK_EXIT_CODES:
            raise CommandError(
                f"autocorrect exited with code {completed.exit_code}",
                command=completed.args,
                exit_code=completed.exit_code,
                stderr=completed.stderr[:RAW_OUTPUT_LOG_LIMIT],
            )

        has_changes = self._git.has_changes(repo_dir)
        self._logger.debug(
            "autocorrect_finished",
            repo_dir=str(repo_dir),
            exit_code=completed.exit_code,
            has_changes=has_changes,
        )
        return has_changes
