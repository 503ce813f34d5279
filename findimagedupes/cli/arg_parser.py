"""
Argument parsing for the CLI interface.

Provides functions to create and configure the argument parser for the
findimagedupes command-line interface.
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional

from ..config import EXIT_FAILURE
from ..user_config import UserConfig, get_user_config
from ..utils.validators import decode_delimiter


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser reporting usage errors with the tool's exit status."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILURE, f"{self.prog}: error: {message}\n")


def _delimiter(value: str) -> str:
    try:
        return decode_delimiter(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def create_parser(user_config: Optional[UserConfig] = None) -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Args:
        user_config: Source of defaults (the global UserConfig if None)

    Returns:
        Configured ArgumentParser instance
    """
    config = user_config or get_user_config()
    default_jobs = config.default_jobs

    parser = _ArgumentParser(
        prog='findimagedupes',
        usage='%(prog)s [options] [file...]',
        description='Find visually similar or duplicate images',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s -R ~/Pictures
      Print every set of identical-looking images, one set per line

  %(prog)s -R -t 5 -f ~/.fingerprints.db ~/Pictures
      Allow small differences, cache fingerprints for fast re-runs

  %(prog)s -f ~/.fingerprints.db --new ~/Downloads/photo.jpg
      Look for matches of a new file among everything fingerprinted before

  %(prog)s -R -p feh --args '-. -^ "%%u / %%l - %%wx%%h - %%n"' ~/Pictures
      Open each set of duplicates in feh
        """
    )

    parser.add_argument(
        'paths',
        nargs='*',
        metavar='file',
        help='Files and directories to search for images'
    )

    parser.add_argument(
        '-t', '--threshold',
        type=int,
        default=config.default_threshold,
        help='Use AMOUNT as threshold of similarity (0..63). Default: %(default)s',
        metavar='AMOUNT'
    )

    parser.add_argument(
        '-R', '--recurse',
        action='store_true',
        help='Search recursively for images inside subdirectories'
    )

    parser.add_argument(
        '-n', '--no-compare',
        action='store_true',
        help="Don't look for duplicates (only fill the fingerprint database)"
    )

    parser.add_argument(
        '-p', '--program',
        help='Launch PROGRAM (in foreground) to view each set of dupes'
    )

    parser.add_argument(
        '--args',
        dest='program_args',
        default='',
        metavar='ARGUMENTS',
        help='Pass additional ARGUMENTS to the program before the filenames'
    )

    parser.add_argument(
        '-f', '--fingerprints', '--fp', '--db',
        dest='fingerprints',
        default=config.fingerprint_db,
        metavar='FILE',
        help='Use FILE as fingerprint database'
    )

    parser.add_argument(
        '-P', '--prune',
        action='store_true',
        help='Remove fingerprint data for images that do not exist any more'
    )

    parser.add_argument(
        '-j', '--jobs',
        type=int,
        default=default_jobs,
        help=f'Number of jobs to use for image processing. Default: {default_jobs}'
    )

    parser.add_argument(
        '-d', '--delimiter',
        type=_delimiter,
        default=config.delimiter,
        help=r'The delimiter to use when printing to stdout (default SPACE); '
             r'use \000 for NULL byte or \x09 for TAB'
    )

    parser.add_argument(
        '-q', '--quiet',
        action='count',
        default=0,
        help='Given once, warnings are not displayed; given twice, '
             'non-fatal errors are not displayed either'
    )

    parser.add_argument(
        '--new',
        dest='check_new',
        action='store_true',
        help='Only look for duplicates of files specified on the command line; '
             'matches are also sought in the fingerprint database, but the new '
             'fingerprints are not added to it'
    )

    parser.add_argument(
        '-e', '--exclude',
        action='append',
        default=[],
        metavar='REGEXP',
        help='Exclude any files/directories that contain this regexp (repeatable)'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Verbose output'
    )

    parser.add_argument(
        '--no-progress',
        action='store_true',
        help='Disable the progress spinner'
    )

    return parser


def parse_arguments(argv=None, user_config: Optional[UserConfig] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        argv: List of argument strings (default: sys.argv)
        user_config: Source of defaults

    Returns:
        Parsed arguments as Namespace object

    Examples:
        >>> args = parse_arguments(['-R', '-t', '5', '/path/to/photos'])
        >>> args.paths
        ['/path/to/photos']
        >>> args.threshold
        5
    """
    parser = create_parser(user_config)
    return parser.parse_args(argv)


__all__ = [
    'create_parser',
    'parse_arguments',
]
