"""Functional options for building a RetryConfig.

Each option records one field; ``build_config`` applies them in order over
the defaults so a later option wins over an earlier one for the same field.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Callable, Dict, Union

from pydantic import ValidationError

from persevere.domain.config.retry import OnRetryFunc, RetryConfig, StopRetryIfFunc

Option = Callable[[Dict[str, Any]], None]


class ConfigurationError(Exception):
    """Configuration validation error."""

    pass


def max_attempts(attempts: int) -> Option:
    """Set the total number of attempts (0-255, default 10)"""

    def apply(fields: Dict[str, Any]) -> None:
        fields["max_attempts"] = attempts

    return apply


def delay(value: Union[float, timedelta]) -> Option:
    """Set the base delay between attempts (seconds or timedelta, default 100ms)"""
    seconds = value.total_seconds() if isinstance(value, timedelta) else value

    def apply(fields: Dict[str, Any]) -> None:
        fields["delay"] = seconds

    return apply


def delay_factor(factor: int) -> Option:
    """Set the delay multiplier.

    The actual wait after attempt n is delay * factor * n. Default is 1.
    """

    def apply(fields: Dict[str, Any]) -> None:
        fields["delay_factor"] = factor

    return apply


def stop_retry_if(fn: StopRetryIfFunc) -> Option:
    """Set the predicate that stops retrying on a terminal error"""

    def apply(fields: Dict[str, Any]) -> None:
        fields["stop_retry_if"] = fn

    return apply


def on_retry(fn: OnRetryFunc) -> Option:
    """Set the hook called with the attempt number after each failure.

    Raising from the hook aborts the execution with the hook's exception.
    """

    def apply(fields: Dict[str, Any]) -> None:
        fields["on_retry"] = fn

    return apply


def build_config(*options: Option) -> RetryConfig:
    """Apply options over the defaults and validate the result

    Args:
        *options: Options created by max_attempts(), delay(), etc.

    Returns:
        Validated, immutable RetryConfig

    Raises:
        ConfigurationError: If any resulting field is invalid
    """
    fields: Dict[str, Any] = {}
    for option in options:
        option(fields)

    try:
        return RetryConfig(**fields)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            field = ".".join(str(x) for x in error["loc"])
            msg = error["msg"]
            errors.append(f"  - {field}: {msg}")
        raise ConfigurationError(
            "Retry configuration validation failed:\n" + "\n".join(errors)
        ) from e
