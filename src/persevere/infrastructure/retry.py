"""Retry executor built on tenacity.

The executor re-invokes a zero-argument operation until it succeeds, the
attempts are exhausted, the stop predicate halts it, the on-retry hook vetoes
it, or the cancellation token fires during a wait between attempts.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Optional, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
)

from persevere.domain.cancellation import CancellationToken
from persevere.domain.config.options import Option, build_config
from persevere.domain.config.retry import RetryConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _WaitInterrupted(Exception):
    """Raised out of tenacity when the token fires during a wait."""

    def __init__(self, last_error: BaseException):
        super().__init__("wait interrupted by cancellation")
        self.last_error = last_error


class _CancellableSleep:
    """Sleep strategy that races the backoff timer against the token."""

    def __init__(self, token: CancellationToken, config: RetryConfig):
        self.token = token
        self.config = config
        self.last_error: Optional[BaseException] = None

    def before_sleep(self, retry_state: RetryCallState) -> None:
        self.last_error = retry_state.outcome.exception()
        seconds = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.debug(
            f"Operation failed (attempt {retry_state.attempt_number}/{self.config.max_attempts}): "
            f"{self.last_error}. Retrying in {seconds:.3f}s"
        )

    def __call__(self, seconds: float) -> None:
        if self.token.wait(seconds):
            logger.debug(f"Retry wait interrupted: {self.token.error}")
            raise _WaitInterrupted(self.last_error)


def _run(token: CancellationToken, operation: Callable[[], T], config: RetryConfig) -> Optional[T]:
    if config.max_attempts == 0:
        logger.warning("max_attempts is 0, operation was not called")
        return None

    def _should_retry(exception: BaseException) -> bool:
        if not isinstance(exception, Exception):
            return False
        if config.stop_retry_if is not None and config.stop_retry_if(token, exception):
            logger.debug(f"Stop condition matched, not retrying: {exception}")
            return False
        return True

    def _after_attempt(retry_state: RetryCallState) -> None:
        if config.on_retry is None:
            return
        try:
            config.on_retry(token, retry_state.attempt_number)
        except Exception as e:
            logger.debug(f"on_retry hook aborted retrying at attempt {retry_state.attempt_number}: {e}")
            raise

    sleep = _CancellableSleep(token, config)
    retrying = Retrying(
        stop=stop_after_attempt(config.max_attempts),
        wait=lambda retry_state: config.delay_for(retry_state.attempt_number),
        retry=retry_if_exception(_should_retry),
        after=_after_attempt,
        before_sleep=sleep.before_sleep,
        sleep=sleep,
        reraise=True,
    )

    try:
        return retrying(operation)
    except _WaitInterrupted as interrupted:
        error = interrupted.last_error
    raise error


def retry(
    token: Optional[CancellationToken],
    operation: Callable[[], T],
    *options: Option,
) -> Optional[T]:
    """Run operation until it succeeds or retrying ends

    Args:
        token: Cancellation token observed between attempts (None = never cancelled)
        operation: Zero-argument callable; raising means the attempt failed
        *options: Options such as max_attempts(3) or delay(0.5)

    Returns:
        The operation's return value (None when max_attempts is 0)

    Raises:
        ConfigurationError: If the options are invalid
        Exception: The last operation error, or the on_retry hook's error
    """
    config = build_config(*options)
    if token is None:
        token = CancellationToken.background()
    return _run(token, operation, config)


def retryable(
    *options: Option,
    token: Optional[CancellationToken] = None,
) -> Callable[[Callable[..., T]], Callable[..., Optional[T]]]:
    """Create a decorator that runs the decorated function through retry().

    Options are validated once, when the decorator is created.
    """
    config = build_config(*options)

    def decorator(func: Callable[..., T]) -> Callable[..., Optional[T]]:
        @functools.wraps(func)
        def wrapped(*args: Any, **kwargs: Any) -> Optional[T]:
            call_token = token if token is not None else CancellationToken.background()
            return _run(call_token, functools.partial(func, *args, **kwargs), config)

        return wrapped

    return decorator
