"""Configuration models with Pydantic validation."""

from persevere.domain.config.options import (
    ConfigurationError,
    Option,
    build_config,
    delay,
    delay_factor,
    max_attempts,
    on_retry,
    stop_retry_if,
)
from persevere.domain.config.retry import (
    DEFAULT_ATTEMPTS,
    DEFAULT_DELAY,
    DEFAULT_DELAY_FACTOR,
    RetryConfig,
)

__all__ = [
    "RetryConfig",
    "ConfigurationError",
    "Option",
    "build_config",
    "max_attempts",
    "delay",
    "delay_factor",
    "stop_retry_if",
    "on_retry",
    "DEFAULT_ATTEMPTS",
    "DEFAULT_DELAY",
    "DEFAULT_DELAY_FACTOR",
]
