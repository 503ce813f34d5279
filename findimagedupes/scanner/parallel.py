"""
Parallel processing module for the scanner package.

Provides the worker pool that resolves Jobs into Results, consulting the
fingerprint store before falling back to the fingerprint oracle.
"""

from __future__ import annotations

import os
import queue
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..cancellation import (
    CancellationToken,
    OperationCancelled,
    get_interruptible,
    put_interruptible,
)
from ..config import DEFAULT_JOBS, JOB_QUEUE_CAPACITY
from ..database import FingerprintStore, StoreError
from ..models import Job, Result
from .dependencies import _logger
from .hashing import FingerprintError, FingerprintOracle, is_image_type

# Tells a worker to exit
_STOP = object()


@dataclass
class PipelineStats:
    """Statistics about fingerprint resolution during a run."""
    dispatched: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    not_images: int = 0
    failures: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def increment(self, name: str) -> None:
        """Thread-safe counter increment."""
        with self._lock:
            setattr(self, name, getattr(self, name) + 1)

    @property
    def hit_rate(self) -> float:
        """Return cache hit rate as percentage of store lookups."""
        lookups = self.cache_hits + self.cache_misses
        if lookups == 0:
            return 0.0
        return (self.cache_hits / lookups) * 100


class WorkerPool:
    """
    Fixed-size pool of fingerprinting threads.

    All workers share one bounded job queue and one result queue. Each
    worker owns a FingerprintOracle for its whole lifetime.
    """

    def __init__(
        self,
        results: queue.Queue,
        jobs: int = DEFAULT_JOBS,
        store: Optional[FingerprintStore] = None,
        token: Optional[CancellationToken] = None,
        check_new_only: bool = False,
        oracle_factory: Callable[[], FingerprintOracle] = FingerprintOracle,
        queue_capacity: int = JOB_QUEUE_CAPACITY,
        stats: Optional[PipelineStats] = None,
    ):
        """
        Args:
            results: Queue receiving Result objects
            jobs: Number of worker threads
            store: Optional fingerprint store used as a cache
            token: Cancellation token shared with the rest of the pipeline
            check_new_only: Do not write fresh fingerprints to the store
            oracle_factory: Creates one oracle per worker
            queue_capacity: Jobs buffered per worker before submit() blocks
            stats: Counters to update (a fresh PipelineStats by default)
        """
        if jobs < 1:
            raise ValueError("jobs must be at least 1")
        self.jobs = jobs
        self.results = results
        self.store = store
        self.token = token or CancellationToken()
        self.check_new_only = check_new_only
        self.oracle_factory = oracle_factory
        self.stats = stats or PipelineStats()
        self.startup_error: Optional[BaseException] = None

        self._queue: queue.Queue = queue.Queue(maxsize=jobs * max(1, queue_capacity))
        self._threads: list[threading.Thread] = []

    def start(self) -> None:
        """Start the worker threads."""
        for i in range(self.jobs):
            thread = threading.Thread(
                target=self._worker,
                name=f"findimagedupes-worker-{i}",
                daemon=True,
            )
            thread.start()
            self._threads.append(thread)

    def submit(self, job: Job) -> None:
        """
        Queue a job, blocking while every worker is busy.

        Raises:
            OperationCancelled: if the run is cancelled before the job is queued
        """
        put_interruptible(self._queue, job, self.token)
        self.stats.increment('dispatched')

    def close(self) -> None:
        """
        Signal the end of the job stream and wait for every worker to exit.

        Jobs already queued are processed unless the run is cancelled.
        """
        try:
            for _ in self._threads:
                put_interruptible(self._queue, _STOP, self.token)
        except OperationCancelled:
            pass
        for thread in self._threads:
            thread.join()
        self._threads = []

    def _worker(self) -> None:
        try:
            oracle = self.oracle_factory()
        except Exception as e:
            _logger.critical(f"Cannot start fingerprint worker: {e}")
            self.startup_error = e
            self.token.cancel()
            return

        try:
            while True:
                job = get_interruptible(self._queue, self.token)
                if job is _STOP:
                    return
                try:
                    result = self._resolve(job, oracle)
                except OperationCancelled:
                    raise
                except Exception as e:
                    _logger.warning(f"{job.path}: unexpected error: {e}")
                    self.stats.increment('failures')
                    continue
                if result is not None:
                    put_interruptible(self.results, result, self.token)
        except OperationCancelled:
            return
        finally:
            oracle.close()

    def _resolve(self, job: Job, oracle: FingerprintOracle) -> Optional[Result]:
        """
        Resolve one job to a Result, or None if the file is skipped.

        Raises:
            OperationCancelled: if the run is cancelled during store access
        """
        abspath = os.path.abspath(job.path)

        if self.store is not None:
            try:
                fingerprint = self.store.lookup(abspath, job.mod_time, self.token)
            except StoreError as e:
                _logger.error(f"{e}")
                fingerprint = None
            if fingerprint is not None:
                self.stats.increment('cache_hits')
                return Result(fingerprint=fingerprint, path=job.path)
            self.stats.increment('cache_misses')

        try:
            mimetype = oracle.classify_file(job.path)
        except FingerprintError as e:
            _logger.warning(f"{job.path}: {e}")
            self.stats.increment('failures')
            return None

        if not is_image_type(mimetype):
            _logger.debug(f"{job.path}: skipping {mimetype}")
            self.stats.increment('not_images')
            return None

        try:
            fingerprint = oracle.compute_fingerprint(job.path)
        except FingerprintError as e:
            _logger.warning(f"{job.path}: {e}")
            self.stats.increment('failures')
            return None

        if fingerprint == 0:
            _logger.warning(f"{job.path}: cannot compute fingerprint")
            self.stats.increment('failures')
            return None

        if self.store is not None and not self.check_new_only:
            try:
                self.store.upsert(abspath, job.mod_time, fingerprint, self.token)
            except StoreError as e:
                _logger.error(f"{e}")

        return Result(fingerprint=fingerprint, path=job.path)


__all__ = ['WorkerPool', 'PipelineStats']
