"""
File discovery module for the scanner package.

Walks root paths and dispatches one Job per regular file, honouring the
recursion depth and the exclusion patterns.
"""

from __future__ import annotations

import os
import re
import stat
from pathlib import Path
from typing import Callable, Iterable, Optional

from ..cancellation import CancellationToken
from ..config import DEPTH_SINGLE_LEVEL
from ..models import Job
from .dependencies import _logger


def _is_excluded(path: str, excludes: Iterable[re.Pattern]) -> bool:
    return any(pattern.search(path) for pattern in excludes)


def walk_tree(
    root: str | Path,
    submit: Callable[[Job], None],
    max_depth: int = DEPTH_SINGLE_LEVEL,
    excludes: Iterable[re.Pattern] = (),
    token: Optional[CancellationToken] = None,
    progress: Optional[Callable[[str], None]] = None,
) -> None:
    """
    Visit every entry under root and submit a Job for each regular file.

    Entries are visited in lexical order per directory, the root first.
    Symbolic links below the root are not followed.

    Args:
        root: Directory (or single file) to walk
        submit: Called with each Job; may block (backpressure) and may
            raise OperationCancelled
        max_depth: Directory levels to visit; -1 for unbounded. 0 and 1
            both mean the root's own contents only
        excludes: Compiled patterns; a path matching any of them is skipped
            together with its subtree
        token: Optional cancellation token, checked before each entry
        progress: Optional callback receiving every visited path

    Raises:
        OperationCancelled: if cancellation is signaled during the walk
    """
    excludes = list(excludes)
    limit = max(max_depth, DEPTH_SINGLE_LEVEL) if max_depth >= 0 else -1
    _visit(str(root), 0, limit, excludes, submit, token, progress, is_root=True)


def _visit(
    path: str,
    level: int,
    limit: int,
    excludes: list[re.Pattern],
    submit: Callable[[Job], None],
    token: Optional[CancellationToken],
    progress: Optional[Callable[[str], None]],
    is_root: bool = False,
) -> None:
    if token is not None:
        token.raise_if_cancelled()

    if progress is not None:
        progress(path)

    if _is_excluded(path, excludes):
        return

    try:
        st = os.stat(path) if is_root else os.lstat(path)
    except OSError as e:
        _logger.warning(f"{path}: {e.strerror or e}")
        return

    if stat.S_ISREG(st.st_mode):
        submit(Job(path=path, mod_time=st.st_mtime_ns))
        return

    if not stat.S_ISDIR(st.st_mode):
        return

    # Directory at the depth boundary: skip its subtree
    if limit >= 0 and level >= limit:
        return

    try:
        names = sorted(os.listdir(path))
    except OSError as e:
        _logger.warning(f"{path}: {e.strerror or e}")
        return

    for name in names:
        _visit(os.path.join(path, name), level + 1, limit, excludes, submit, token, progress)


__all__ = ['walk_tree']
