"""
Report output for the CLI interface.

Prints duplicate groups to stdout, or launches a viewer program on each
group, and provides the progress spinner shown while walking.
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from typing import Optional, TextIO

from tqdm import tqdm

from ..models import DuplicateGroup


class ProgressSpinner:
    """
    Spinner on stderr showing the path currently being visited.

    Wraps an open-ended tqdm bar; a disabled spinner accepts updates and
    prints nothing.
    """

    def __init__(self, enabled: bool = True):
        self._bar = tqdm(
            total=None,
            desc="Scanning",
            unit="file",
            leave=False,
            dynamic_ncols=True,
            file=sys.stderr,
            disable=not enabled,
        )

    def spin(self, path: str) -> None:
        """Advance the spinner and show path."""
        self._bar.set_postfix_str(path, refresh=False)
        self._bar.update(1)

    def stop(self) -> None:
        """Erase the spinner."""
        self._bar.close()


def print_groups(
    groups: list[DuplicateGroup],
    delimiter: str = " ",
    stream: Optional[TextIO] = None,
) -> None:
    """
    Print one line per group, paths joined by delimiter.

    Lines go to the binary buffer of the stream when it has one, so names
    that are not valid UTF-8 are written back as the original bytes.

    Args:
        groups: Duplicate groups in output order
        delimiter: Separator between paths
        stream: Output stream (stdout by default)
    """
    out = stream or sys.stdout
    raw = getattr(out, 'buffer', None)
    if raw is None:
        for group in groups:
            out.write(delimiter.join(group.paths) + "\n")
        out.flush()
        return

    out.flush()
    for group in groups:
        raw.write(os.fsencode(delimiter.join(group.paths)) + b"\n")
    raw.flush()


def launch_viewer(
    groups: list[DuplicateGroup],
    program: str,
    program_args: list[str],
    logger: logging.Logger,
) -> int:
    """
    Run program in the foreground once per group.

    The program receives program_args followed by the paths of the group.
    A failing invocation is logged and the next group is shown.

    Returns:
        Number of failed invocations
    """
    failures = 0
    for group in groups:
        cmd = [program, *program_args, *group.paths]
        try:
            subprocess.run(cmd, check=True)
        except (OSError, subprocess.CalledProcessError) as e:
            logger.error(f"{program} {' '.join(cmd[1:])}: {e}")
            failures += 1
    return failures


__all__ = ['ProgressSpinner', 'print_groups', 'launch_viewer']
