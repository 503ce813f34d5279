"""
CLI workflow orchestration for findimagedupes.

Provides the CLIOrchestrator class that coordinates the entire CLI
workflow from argument parsing through final output.
"""

from __future__ import annotations

import logging
import shlex
import sys
from typing import Callable, Optional

from ..cancellation import CancellationToken, OperationCancelled, interrupt_handler
from ..config import (
    DEPTH_SINGLE_LEVEL,
    DEPTH_UNBOUNDED,
    EXIT_FAILURE,
    EXIT_SUCCESS,
    QUIET_NONE,
    QUIET_WARNINGS,
)
from ..database import FingerprintStore, StoreError
from ..scanner import (
    FingerprintError,
    FingerprintOracle,
    find_duplicate_groups,
    has_heif_support,
    run_pipeline,
)
from ..user_config import UserConfig, get_user_config
from ..utils.validators import compile_excludes, validate_options
from .arg_parser import create_parser
from .reporting import ProgressSpinner, launch_viewer, print_groups


def setup_logging(quiet: int = QUIET_NONE, verbose: bool = False) -> logging.Logger:
    """
    Configure logging for the CLI.

    Args:
        quiet: 0 shows warnings and errors, 1 errors only, 2 nothing but
            fatal messages
        verbose: Enable DEBUG level logging (ignored when quiet)

    Returns:
        Configured logger instance
    """
    if verbose and quiet == QUIET_NONE:
        level = logging.DEBUG
    elif quiet == QUIET_NONE:
        level = logging.WARNING
    elif quiet == QUIET_WARNINGS:
        level = logging.ERROR
    else:
        level = logging.CRITICAL
    logging.basicConfig(
        level=level,
        format='%(levelname)s: %(message)s',
        stream=sys.stderr,
        force=True,
    )
    return logging.getLogger('findimagedupes')


class CLIOrchestrator:
    """
    Orchestrates the CLI workflow.

    Manages the complete lifecycle from argument parsing through
    fingerprinting, clustering and output.
    """

    def __init__(
        self,
        argv: Optional[list[str]] = None,
        user_config: Optional[UserConfig] = None,
        oracle_factory: Callable[[], FingerprintOracle] = FingerprintOracle,
        token: Optional[CancellationToken] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            argv: Command-line arguments (sys.argv[1:] if None)
            user_config: Source of option defaults
            oracle_factory: Creates the fingerprint oracles
            token: Cancellation token (a fresh one if None)
        """
        self.argv = argv
        self.user_config = user_config or get_user_config()
        self.oracle_factory = oracle_factory
        self.token = token or CancellationToken()
        self.parser = None
        self.logger = None
        self.args = None
        self.excludes = []
        self.program_args = []
        self.store: Optional[FingerprintStore] = None
        self.groups = {}
        self.stats = None

    def run(self) -> int:
        """
        Execute the complete CLI workflow.

        Returns:
            Exit code (0 for success, 1 for error or interrupt)

        Workflow phases:
        1. Setup & argument parsing
        2. Validation
        3. Opening the fingerprint database
        4. Pruning (if requested)
        5. Fingerprinting
        6. Duplicate detection & output
        """
        # Phase 1: Setup
        self._setup_phase()

        # Phase 2: Validation
        exit_code = self._validate_phase()
        if exit_code != EXIT_SUCCESS:
            return exit_code

        # Phase 3: Fingerprint database
        exit_code = self._open_store_phase()
        if exit_code != EXIT_SUCCESS:
            return exit_code

        try:
            with interrupt_handler(self.token):
                # Phase 4: Prune
                exit_code = self._prune_phase()
                if exit_code != EXIT_SUCCESS or not self.args.paths:
                    return exit_code

                # Phase 5: Fingerprinting
                exit_code = self._scan_phase()
                if exit_code != EXIT_SUCCESS or self.args.no_compare:
                    return exit_code

            # Phase 6: Detection & output (interrupts behave normally again)
            return self._detect_phase()
        finally:
            self._close_store()

    def _setup_phase(self) -> None:
        """Phase 1: Parse arguments and setup logging."""
        self.parser = create_parser(self.user_config)
        self.args = self.parser.parse_args(self.argv)
        self.logger = setup_logging(self.args.quiet, self.args.verbose)

    def _usage_error(self, message: str) -> int:
        self.logger.critical(message)
        if not self.args.paths:
            self.parser.print_usage(sys.stderr)
        return EXIT_FAILURE

    def _validate_phase(self) -> int:
        """
        Phase 2: Validate arguments before touching any file.

        Returns:
            0 for success, 1 for validation error
        """
        is_valid, error = validate_options(
            paths=self.args.paths,
            threshold=self.args.threshold,
            jobs=self.args.jobs,
            fingerprints=self.args.fingerprints,
            prune=self.args.prune,
            program=self.args.program,
            program_args=self.args.program_args,
            no_compare=self.args.no_compare,
        )
        if not is_valid:
            return self._usage_error(error)

        patterns = list(self.user_config.exclude) + list(self.args.exclude)
        self.excludes, error = compile_excludes(patterns)
        if error:
            return self._usage_error(error)

        try:
            self.program_args = shlex.split(self.args.program_args)
        except ValueError as e:
            return self._usage_error(f"--args: {e}")

        if self.args.check_new and not self.args.fingerprints:
            self.logger.warning("--new has no effect without -f")

        return EXIT_SUCCESS

    def _open_store_phase(self) -> int:
        """
        Phase 3: Open the fingerprint database if one was given.

        Returns:
            0 for success, 1 if the database cannot be opened
        """
        if not self.args.fingerprints:
            return EXIT_SUCCESS

        try:
            self.store = FingerprintStore(self.args.fingerprints)
        except StoreError as e:
            self.logger.critical(f"{e}")
            return EXIT_FAILURE

        stats = self.store.get_stats()
        self.logger.info(
            f"Fingerprint database {stats['db_path']}: "
            f"{stats['total_entries']:,} entries ({stats['db_size_mb']} MB)"
        )
        return EXIT_SUCCESS

    def _prune_phase(self) -> int:
        """
        Phase 4: Prune the fingerprint database.

        Returns:
            0 for success, 1 on failure or interrupt
        """
        if not self.args.prune:
            return EXIT_SUCCESS

        try:
            with self.oracle_factory() as oracle:
                self.store.prune(oracle.compute_fingerprint, self.token)
        except OperationCancelled:
            return EXIT_FAILURE
        except (StoreError, FingerprintError) as e:
            self.logger.critical(f"{e}")
            return EXIT_FAILURE

        return EXIT_SUCCESS

    def _scan_phase(self) -> int:
        """
        Phase 5: Walk the paths and fingerprint every image.

        Returns:
            0 for success, 1 on interrupt or fatal worker error
        """
        max_depth = DEPTH_UNBOUNDED if self.args.recurse else DEPTH_SINGLE_LEVEL
        self.logger.debug(f"HEIC/HEIF support: {'enabled' if has_heif_support() else 'disabled'}")
        spinner = ProgressSpinner(enabled=not self.args.no_progress and sys.stderr.isatty())

        try:
            self.groups, self.stats = run_pipeline(
                self.args.paths,
                jobs=self.args.jobs,
                store=self.store,
                token=self.token,
                max_depth=max_depth,
                excludes=self.excludes,
                check_new_only=self.args.check_new,
                oracle_factory=self.oracle_factory,
                progress=spinner.spin,
            )
        except OperationCancelled:
            return EXIT_FAILURE
        except FingerprintError as e:
            self.logger.critical(f"{e}")
            return EXIT_FAILURE
        finally:
            spinner.stop()

        if self.store is not None:
            self.logger.info(
                f"Cache: {self.stats.cache_hits:,} hits, {self.stats.cache_misses:,} misses "
                f"({self.stats.hit_rate:.1f}% hit rate)"
            )
        self.logger.info(f"Fingerprinted {len(self.groups):,} distinct images")
        return EXIT_SUCCESS

    def _detect_phase(self) -> int:
        """
        Phase 6: Cluster fingerprints and print or view each group.

        Returns:
            0 for success
        """
        store_entries = None
        if self.store is not None and self.args.check_new:
            try:
                store_entries = self.store.entries()
            except StoreError as e:
                self.logger.error(f"Cannot get all fingerprints: {e}")
        self._close_store()

        groups = find_duplicate_groups(
            self.groups,
            threshold=self.args.threshold,
            store_entries=store_entries,
            logger=self.logger,
        )
        self.logger.info(f"Found {len(groups):,} groups of similar images")

        if self.args.program:
            launch_viewer(groups, self.args.program, self.program_args, self.logger)
        else:
            print_groups(groups, self.args.delimiter)

        return EXIT_SUCCESS

    def _close_store(self) -> None:
        if self.store is None:
            return
        try:
            self.store.close()
        except StoreError as e:
            self.logger.error(f"Error closing fingerprint database: {e}")
        self.store = None


__all__ = ['CLIOrchestrator', 'setup_logging']
