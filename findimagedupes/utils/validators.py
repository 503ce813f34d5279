"""
Input validation for findimagedupes.

Provides validators for the command-line configuration. Every check runs
before any file I/O and reports problems as (is_valid, error_message).
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

from ..config import MAX_THRESHOLD


def validate_threshold(threshold: int) -> tuple[bool, str]:
    """
    Validate that a threshold value is within acceptable range.

    Args:
        threshold: Threshold value to validate (0-63 for 64-bit fingerprints)

    Returns:
        Tuple of (is_valid, error_message)

    Examples:
        >>> validate_threshold(10)
        (True, '')
        >>> validate_threshold(64)
        (False, 'Threshold must be between 0 and 63')
    """
    try:
        threshold = int(threshold)
    except (ValueError, TypeError):
        return False, "Threshold must be an integer"
    if not 0 <= threshold <= MAX_THRESHOLD:
        return False, f"Threshold must be between 0 and {MAX_THRESHOLD}"
    return True, ""


def validate_jobs(jobs: int) -> tuple[bool, str]:
    """
    Validate the number of workers.

    Examples:
        >>> validate_jobs(0)
        (False, 'Jobs must be at least 1')
    """
    try:
        jobs = int(jobs)
    except (ValueError, TypeError):
        return False, "Jobs must be an integer"
    if jobs < 1:
        return False, "Jobs must be at least 1"
    return True, ""


def compile_excludes(patterns: Iterable[str]) -> tuple[list[re.Pattern], str]:
    """
    Compile exclusion patterns.

    Returns:
        Tuple of (compiled patterns, error_message); the list is empty when
        a pattern is invalid

    Examples:
        >>> compile_excludes(['['])[1]
        "Invalid exclude pattern '[': unterminated character set at position 0"
    """
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as e:
            return [], f"Invalid exclude pattern '{pattern}': {e}"
    return compiled, ""


def decode_delimiter(value: str) -> str:
    r"""
    Decode backslash escapes in a delimiter.

    Raises:
        ValueError: on a malformed escape sequence

    Examples:
        >>> decode_delimiter(r'\000')
        '\x00'
        >>> decode_delimiter(r'\x09')
        '\t'
    """
    try:
        return value.encode('latin-1', 'backslashreplace').decode('unicode_escape')
    except UnicodeError as e:
        raise ValueError(f"failed to decode quoted string: {e}") from e


def validate_options(
    paths: list,
    threshold: int,
    jobs: int,
    fingerprints: Optional[str] = None,
    prune: bool = False,
    program: Optional[str] = None,
    program_args: Optional[str] = None,
    no_compare: bool = False,
) -> tuple[bool, str]:
    """
    Validate all options and their combinations.

    Args:
        paths: Files and directories given on the command line
        threshold: Hamming distance threshold
        jobs: Number of workers
        fingerprints: Fingerprint database path ('' or None for no caching)
        prune: Whether --prune was given
        program: Viewer program
        program_args: Arguments for the viewer program
        no_compare: Whether --no-compare was given

    Returns:
        Tuple of (is_valid, error_message)
    """
    if prune and not fingerprints:
        return False, "--prune used without -f"

    if program_args and not program:
        return False, "--args used without --program"

    if no_compare and program:
        return False, "--no-compare used with --program"

    if no_compare and not fingerprints:
        return False, "--no-compare is useless without -f"

    is_valid, error = validate_threshold(threshold)
    if not is_valid:
        return False, error

    is_valid, error = validate_jobs(jobs)
    if not is_valid:
        return False, error

    if not paths and not prune:
        return False, "no files or directories given"

    return True, ""


__all__ = [
    'validate_threshold',
    'validate_jobs',
    'compile_excludes',
    'decode_delimiter',
    'validate_options',
]
