"""
Cooperative cancellation for the fingerprinting pipeline.

A single CancellationToken is shared by the walker, every worker and the
fingerprint store. Blocking operations go through the helpers below, which
wake up every CANCEL_POLL_INTERVAL seconds to check the token and raise
OperationCancelled once it has been triggered.
"""

from __future__ import annotations

import logging
import queue
import signal
import threading
from contextlib import contextmanager
from typing import Any, Generator, Optional

from .config import CANCEL_POLL_INTERVAL

logger = logging.getLogger(__name__)


class OperationCancelled(Exception):
    """Raised when a blocking operation observes the cancellation signal."""


class CancellationToken:
    """
    Thread-safe, one-shot cancellation signal.

    Usage:
        token = CancellationToken()
        with interrupt_handler(token):
            run_pipeline(paths, token=token)
    """

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()

    @property
    def cancelled(self) -> bool:
        """True once cancel() has been called."""
        return self._event.is_set()

    def cancel(self) -> bool:
        """
        Trigger cancellation.

        Returns:
            True if this call triggered it, False if it was already triggered
        """
        with self._lock:
            if self._event.is_set():
                return False
            self._event.set()
            return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled or timeout; returns the cancelled state."""
        return self._event.wait(timeout)

    def raise_if_cancelled(self) -> None:
        """Raise OperationCancelled if the token has been triggered."""
        if self._event.is_set():
            raise OperationCancelled()


def put_interruptible(q: queue.Queue, item: Any, token: Optional[CancellationToken]) -> None:
    """
    Put an item on a bounded queue, blocking while it is full.

    Raises:
        OperationCancelled: if the token is triggered before the put succeeds
    """
    if token is None:
        q.put(item)
        return
    while True:
        token.raise_if_cancelled()
        try:
            q.put(item, timeout=CANCEL_POLL_INTERVAL)
            return
        except queue.Full:
            continue


def get_interruptible(q: queue.Queue, token: Optional[CancellationToken]) -> Any:
    """
    Get an item from a queue, blocking while it is empty.

    Raises:
        OperationCancelled: if the token is triggered before an item arrives
    """
    if token is None:
        return q.get()
    while True:
        token.raise_if_cancelled()
        try:
            return q.get(timeout=CANCEL_POLL_INTERVAL)
        except queue.Empty:
            continue


def acquire_interruptible(lock: threading.Lock, token: Optional[CancellationToken]) -> None:
    """
    Acquire a lock, giving up if the token is triggered while waiting.

    Raises:
        OperationCancelled: if the token is triggered before the lock is held
    """
    if token is None:
        lock.acquire()
        return
    while True:
        token.raise_if_cancelled()
        if lock.acquire(timeout=CANCEL_POLL_INTERVAL):
            return


@contextmanager
def interrupt_handler(token: CancellationToken) -> Generator[CancellationToken, None, None]:
    """
    Route SIGINT to the token instead of raising KeyboardInterrupt.

    The first interrupt cancels the token; later interrupts are no-ops.
    The previous handler is restored on exit.
    """
    def _handle(signum, frame):
        if token.cancel():
            logger.debug("Interrupt received, stopping")

    previous = signal.signal(signal.SIGINT, _handle)
    try:
        yield token
    finally:
        signal.signal(signal.SIGINT, previous)


__all__ = [
    'OperationCancelled',
    'CancellationToken',
    'put_interruptible',
    'get_interruptible',
    'acquire_interruptible',
    'interrupt_handler',
]
