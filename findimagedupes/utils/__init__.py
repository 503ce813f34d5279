"""
Utilities package for findimagedupes.

Provides:
- validators: Command-line option validation
"""

from __future__ import annotations

from . import validators

from .validators import (
    validate_threshold,
    validate_jobs,
    compile_excludes,
    decode_delimiter,
    validate_options,
)

__all__ = [
    # Submodules
    'validators',
    # Validators
    'validate_threshold',
    'validate_jobs',
    'compile_excludes',
    'decode_delimiter',
    'validate_options',
]
