"""Retry configuration model."""

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from persevere.domain.cancellation import CancellationToken

logger = logging.getLogger(__name__)

DEFAULT_ATTEMPTS = 10
DEFAULT_DELAY = 0.1
DEFAULT_DELAY_FACTOR = 1

MAX_ATTEMPTS_LIMIT = 255

StopRetryIfFunc = Callable[[CancellationToken, Exception], bool]
OnRetryFunc = Callable[[CancellationToken, int], None]


class RetryConfig(BaseModel):
    """Configuration for a single retry execution.

    Attributes:
        max_attempts: Total number of attempts, the first try included (0-255)
        delay: Base delay between attempts in seconds
        delay_factor: Multiplier applied to the delay on every attempt
        stop_retry_if: Predicate that halts retrying when it returns True
        on_retry: Hook called after every failed attempt; raising vetoes retrying
    """

    max_attempts: int = Field(DEFAULT_ATTEMPTS, ge=0, le=MAX_ATTEMPTS_LIMIT)
    delay: float = Field(DEFAULT_DELAY, ge=0.0)
    delay_factor: int = Field(DEFAULT_DELAY_FACTOR, ge=0)
    stop_retry_if: Optional[StopRetryIfFunc] = None
    on_retry: Optional[OnRetryFunc] = None

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )

    def delay_for(self, attempt: int) -> float:
        """Delay in seconds after the given failed attempt (1-based).

        Grows linearly: delay * delay_factor * attempt.
        """
        return self.delay * self.delay_factor * attempt

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> "RetryConfig":
        """Build config from a plain mapping such as a parsed settings section.

        Callables are not read from the mapping; attach them with options.
        Unparseable values fall back to the defaults and out-of-range values
        are clamped.
        """
        max_attempts = config.get("max_attempts", DEFAULT_ATTEMPTS)
        delay = config.get("delay", DEFAULT_DELAY)
        delay_factor = config.get("delay_factor", DEFAULT_DELAY_FACTOR)

        try:
            max_attempts_i = int(max_attempts)
        except (TypeError, ValueError):
            logger.warning(f"Invalid max_attempts {max_attempts!r}, using {DEFAULT_ATTEMPTS}")
            max_attempts_i = DEFAULT_ATTEMPTS

        try:
            delay_f = float(delay)
        except (TypeError, ValueError):
            logger.warning(f"Invalid delay {delay!r}, using {DEFAULT_DELAY}")
            delay_f = DEFAULT_DELAY

        try:
            delay_factor_i = int(delay_factor)
        except (TypeError, ValueError):
            logger.warning(f"Invalid delay_factor {delay_factor!r}, using {DEFAULT_DELAY_FACTOR}")
            delay_factor_i = DEFAULT_DELAY_FACTOR

        if max_attempts_i < 0:
            max_attempts_i = 0
        if max_attempts_i > MAX_ATTEMPTS_LIMIT:
            max_attempts_i = MAX_ATTEMPTS_LIMIT
        if delay_f < 0:
            delay_f = 0.0
        if delay_factor_i < 0:
            delay_factor_i = 0

        fields: Dict[str, Any] = {
            "max_attempts": max_attempts_i,
            "delay": delay_f,
            "delay_factor": delay_factor_i,
        }
        return cls(**fields)
