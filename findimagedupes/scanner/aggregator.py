"""
Result aggregation for the scanner package.

The Aggregator is the only writer of the fingerprint -> paths mapping while
the pool runs; workers reach it exclusively through the result queue.
"""

from __future__ import annotations

import queue
import threading
from typing import Optional

from ..models import Result
from .dependencies import _logger

# Marks the end of the result stream
_END = object()


class Aggregator:
    """
    Drains the result queue into a fingerprint -> paths mapping.

    Usage:
        aggregator = Aggregator(results_queue)
        aggregator.start()
        ...  # workers put Result objects on results_queue
        groups = aggregator.finish()  # after every worker has exited
    """

    def __init__(self, results: queue.Queue):
        self.results = results
        self.groups: dict[int, list[str]] = {}
        self.received = 0
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        """Start the consumer thread."""
        self._thread = threading.Thread(
            target=self._run,
            name="findimagedupes-aggregator",
            daemon=True,
        )
        self._thread.start()

    def add(self, result: Result) -> None:
        """Insert one result, keeping the paths of a fingerprint unique."""
        paths = self.groups.setdefault(result.fingerprint, [])
        if result.path not in paths:
            paths.append(result.path)
        self.received += 1

    def _run(self) -> None:
        while True:
            item = self.results.get()
            if item is _END:
                return
            self.add(item)

    def finish(self) -> dict[int, list[str]]:
        """
        Close the result stream and wait until every result is ingested.

        Must only be called once all producers have stopped.

        Returns:
            The fingerprint -> paths mapping; ownership passes to the caller
        """
        self.results.put(_END)
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        _logger.debug(
            f"Aggregated {self.received:,} results into {len(self.groups):,} fingerprints"
        )
        return self.groups


__all__ = ['Aggregator']
