"""
Pipeline orchestration for the scanner package.

Wires the walker, the worker pool and the aggregator together:
walk every root -> drain the pool -> close the result stream.
"""

from __future__ import annotations

import queue
import re
from pathlib import Path
from typing import Callable, Iterable, Optional

from ..cancellation import CancellationToken, OperationCancelled
from ..config import DEFAULT_JOBS, DEPTH_SINGLE_LEVEL, JOB_QUEUE_CAPACITY
from ..database import FingerprintStore
from .aggregator import Aggregator
from .dependencies import _logger
from .file_discovery import walk_tree
from .hashing import FingerprintOracle
from .parallel import PipelineStats, WorkerPool


def run_pipeline(
    roots: Iterable[str | Path],
    jobs: int = DEFAULT_JOBS,
    store: Optional[FingerprintStore] = None,
    token: Optional[CancellationToken] = None,
    max_depth: int = DEPTH_SINGLE_LEVEL,
    excludes: Iterable[re.Pattern] = (),
    check_new_only: bool = False,
    oracle_factory: Callable[[], FingerprintOracle] = FingerprintOracle,
    progress: Optional[Callable[[str], None]] = None,
    queue_capacity: int = JOB_QUEUE_CAPACITY,
) -> tuple[dict[int, list[str]], PipelineStats]:
    """
    Fingerprint every file under roots and group paths by fingerprint.

    Roots are walked one after another by the calling thread while `jobs`
    workers resolve fingerprints concurrently.

    Args:
        roots: Directories or files to scan
        jobs: Number of worker threads
        store: Optional fingerprint store used as a cache
        token: Cancellation token (a private one is used if omitted)
        max_depth: Recursion depth, see walk_tree
        excludes: Compiled exclusion patterns
        check_new_only: Do not write fresh fingerprints to the store
        oracle_factory: Creates one oracle per worker
        progress: Optional callback receiving every visited path
        queue_capacity: Jobs buffered per worker

    Returns:
        Tuple of (fingerprint -> paths mapping, PipelineStats)

    Raises:
        OperationCancelled: if the run was cancelled; partial results are
            discarded
        FingerprintError: if a worker could not create its oracle
    """
    token = token or CancellationToken()
    excludes = list(excludes)
    stats = PipelineStats()

    results: queue.Queue = queue.Queue(maxsize=max(1, jobs))
    aggregator = Aggregator(results)
    pool = WorkerPool(
        results,
        jobs=jobs,
        store=store,
        token=token,
        check_new_only=check_new_only,
        oracle_factory=oracle_factory,
        queue_capacity=queue_capacity,
        stats=stats,
    )

    aggregator.start()
    pool.start()
    try:
        for root in roots:
            walk_tree(
                root,
                pool.submit,
                max_depth=max_depth,
                excludes=excludes,
                token=token,
                progress=progress,
            )
    except OperationCancelled:
        _logger.debug("Walk stopped by cancellation")
    finally:
        pool.close()
        groups = aggregator.finish()

    if pool.startup_error is not None:
        raise pool.startup_error
    if token.cancelled:
        raise OperationCancelled()

    _logger.debug(
        f"Dispatched {stats.dispatched:,} files: {stats.cache_hits:,} cached, "
        f"{stats.not_images:,} not images, {stats.failures:,} failed"
    )
    return groups, stats


__all__ = ['run_pipeline']
