from __future__ import annotations

import os
import shutil
import stat
from pathlib import Path
from typing import Callable


def _make_writable_and_retry(func: Callable[[str], None], path: str, exc: BaseException) -> None:
    """``onexc`` hook: git marks objects read-only, so unlock and retry once."""
    if isinstance(exc, FileNotFoundError):
        return
    if not isinstance(exc, PermissionError):
        raise exc
    parent = os.path.dirname(path)
    if parent:
        os.chmod(parent, stat.S_IRWXU)
    os.chmod(path, stat.S_IWUSR | stat.S_IRUSR)
    func(path)


def rmtree_force(path: Path) -> None:
    """Remove a repository working tree. Missing paths are ignored."""
    path = Path(path)
    if path.is_symlink() or path.is_file():
        path.unlink(missing_ok=True)
        return
    if not path.exists():
        return
    shutil.rmtree(path, onexc=_make_writable_and_retry)
