"""Retry executor with linear backoff and cooperative cancellation"""

from persevere.domain.cancellation import CancellationToken, Cancelled, DeadlineExceeded
from persevere.domain.config import (
    DEFAULT_ATTEMPTS,
    DEFAULT_DELAY,
    DEFAULT_DELAY_FACTOR,
    ConfigurationError,
    Option,
    RetryConfig,
    build_config,
    delay,
    delay_factor,
    max_attempts,
    on_retry,
    stop_retry_if,
)
from persevere.infrastructure.retry import retry, retryable

__all__ = [
    "retry",
    "retryable",
    "RetryConfig",
    "ConfigurationError",
    "Option",
    "build_config",
    "max_attempts",
    "delay",
    "delay_factor",
    "stop_retry_if",
    "on_retry",
    "CancellationToken",
    "Cancelled",
    "DeadlineExceeded",
    "DEFAULT_ATTEMPTS",
    "DEFAULT_DELAY",
    "DEFAULT_DELAY_FACTOR",
]
