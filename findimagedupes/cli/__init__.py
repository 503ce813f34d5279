"""
CLI package for findimagedupes.

Provides the command-line interface: option parsing, the workflow
orchestration and the output of duplicate groups (printed or shown in a
viewer program).

Public API:
- main: Entry point for CLI execution
- CLIOrchestrator: CLI workflow orchestration class
- print_groups / launch_viewer: Output of duplicate groups
"""

from __future__ import annotations

from typing import Optional

from .orchestrator import CLIOrchestrator, setup_logging
from .arg_parser import create_parser, parse_arguments
from .reporting import ProgressSpinner, print_groups, launch_viewer


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Delegates to CLIOrchestrator to execute the complete workflow.

    Returns:
        Exit code (0 for success, 1 for error or interrupt)

    Examples:
        >>> # Called from __main__.py
        >>> exit_code = main()
        >>> sys.exit(exit_code)
    """
    orchestrator = CLIOrchestrator(argv)
    return orchestrator.run()


__all__ = [
    # Main entry point
    'main',
    # Core classes
    'CLIOrchestrator',
    'ProgressSpinner',
    # Utilities
    'setup_logging',
    'create_parser',
    'parse_arguments',
    'print_groups',
    'launch_viewer',
]
