"""Cancellation tokens for cooperative cancellation of retry loops.

A token is fired either explicitly with ``cancel()`` or implicitly when its
deadline passes. Waiting code races a timer against the token with
``wait(timeout)``; whoever blocks on the token wakes up as soon as another
thread cancels it.
"""

from __future__ import annotations

import logging
import threading
import time
import weakref
from typing import Optional

logger = logging.getLogger(__name__)


class Cancelled(Exception):
    """The token was cancelled explicitly."""

    def __init__(self, message: str = "operation cancelled"):
        super().__init__(message)


class DeadlineExceeded(Exception):
    """The token's deadline passed."""

    def __init__(self, message: str = "deadline exceeded"):
        super().__init__(message)


class CancellationToken:
    """Cancellation signal with an optional deadline and parent.

    Args:
        timeout: Seconds until the token expires on its own (None = never)
        parent: Token whose cancellation also cancels this one

    Raises:
        ValueError: If timeout is negative
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        parent: Optional[CancellationToken] = None,
    ):
        if timeout is not None and timeout < 0:
            raise ValueError("timeout must be non-negative")

        self._event = threading.Event()
        self._lock = threading.Lock()
        self._children: "weakref.WeakSet[CancellationToken]" = weakref.WeakSet()
        self._error: Optional[Exception] = None
        self._parent = parent

        deadline = time.monotonic() + timeout if timeout is not None else None
        if parent is not None and parent.deadline is not None:
            if deadline is None or parent.deadline < deadline:
                deadline = parent.deadline
        self._deadline = deadline

        if parent is not None:
            parent._adopt(self)

    @classmethod
    def background(cls) -> CancellationToken:
        """Token that only fires when cancel() is called on it."""
        return cls()

    def child(self, timeout: Optional[float] = None) -> CancellationToken:
        """Create a token that is cancelled together with this one

        Args:
            timeout: Own timeout of the child; the parent's deadline still applies

        Returns:
            New child token
        """
        return CancellationToken(timeout=timeout, parent=self)

    @property
    def deadline(self) -> Optional[float]:
        """Deadline on the time.monotonic() clock, or None"""
        return self._deadline

    @property
    def cancelled(self) -> bool:
        """Non-blocking check whether the token has fired"""
        self._expire_if_due()
        return self._event.is_set()

    @property
    def error(self) -> Optional[Exception]:
        """Why the token fired: Cancelled, DeadlineExceeded or None"""
        self._expire_if_due()
        return self._error

    def remaining(self) -> Optional[float]:
        """Seconds left until the deadline (None without a deadline)"""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def cancel(self) -> None:
        """Fire the token and all of its children. Idempotent."""
        self._cancel(Cancelled())

    def close(self) -> None:
        """Detach from the parent without firing. Idempotent."""
        if self._parent is not None:
            self._parent._forget(self)

    def __enter__(self) -> CancellationToken:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the token fires or timeout seconds elapse

        A deadline that falls before the end of the timeout wins the race,
        as does a deadline that falls exactly on it.

        Args:
            timeout: Maximum seconds to block (None = until fired)

        Returns:
            True if the token has fired when the wait ends
        """
        if timeout is not None and timeout < 0:
            timeout = 0.0

        remaining = self.remaining()
        deadline_first = remaining is not None and (timeout is None or remaining <= timeout)
        if deadline_first:
            if not self._event.wait(remaining):
                self._cancel(DeadlineExceeded())
        else:
            self._event.wait(timeout)
        return self.cancelled

    def _expire_if_due(self) -> None:
        if self._deadline is None or self._event.is_set():
            return
        if time.monotonic() >= self._deadline:
            self._cancel(DeadlineExceeded())

    def _cancel(self, error: Exception) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._error = error
            self._event.set()
            children = list(self._children)
            self._children.clear()

        logger.debug(f"Cancellation token fired: {error}")
        for child in children:
            child._cancel(error)
        if self._parent is not None:
            self._parent._forget(self)

    def _adopt(self, child: CancellationToken) -> None:
        self._expire_if_due()
        with self._lock:
            if not self._event.is_set():
                self._children.add(child)
                return
            error = self._error
        child._cancel(error)

    def _forget(self, child: CancellationToken) -> None:
        with self._lock:
            self._children.discard(child)

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "active"
        return f"CancellationToken({state}, deadline={self._deadline})"
