from __future__ import annotations

import subprocess
import time
from pathlib import Path
from typing import Sequence

from ..core.domain.exceptions import CommandError
from ..core.ports import CommandResult


class SubprocessCommandRunner:
    """Runs external tools with a bounded timeout and captured text output."""

    def run(self, args: Sequence[str], *, cwd: Path, timeout: float) -> CommandResult:
        argv = tuple(str(a) for a in args)
        started = time.monotonic()
        try:
            completed = subprocess.run(
                argv,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise CommandError(
                f"{argv[0]} timed out after {timeout}s",
                command=argv,
                timed_out=True,
            ) from e
        except OSError as e:
            raise CommandError(f"failed to start {argv[0]}: {e}", command=argv) from e

        return CommandResult(
            args=argv,
            exit_code=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            duration=time.monotonic() - started,
        )
