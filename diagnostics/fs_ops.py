from __future__ import annotations

import os
import shutil
import stat
import sys
import tempfile
from pathlib import Path
from typing import Callable


def safe_rmtree(path: Path) -> None:
    """Remove a tree with Windows-friendly permission handling."""
    path = Path(path)
    if not path.exists():
        return
    if sys.version_info >= (3, 12):
        shutil.rmtree(path, onexc=_handle_remove_exc)
    else:
        shutil.rmtree(path, onerror=_handle_remove_error)


def make_scratch_dir(prefix: str) -> Path:
    """Create a private temporary directory; callers remove it with safe_rmtree."""
    return Path(tempfile.mkdtemp(prefix=prefix))


def _handle_remove_error(func: Callable, path: str, exc_info) -> None:
    _handle_remove_exc(func, path, exc_info[1])


def _handle_remove_exc(func: Callable, path: str, exc: BaseException) -> None:
    if isinstance(exc, PermissionError) or getattr(exc, "winerror", None) == 5:
        _make_writable(Path(path))
        try:
            func(path)
            return
        except OSError:
            pass
    raise exc


def _make_writable(path: Path) -> None:
    for target in (path, path.parent):
        try:
            os.chmod(target, stat.S_IWRITE | stat.S_IREAD | stat.S_IEXEC)
        except OSError:
            pass
