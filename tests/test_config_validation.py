"""Tests for retry configuration validation with Pydantic."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from persevere.domain.config import (
    DEFAULT_ATTEMPTS,
    DEFAULT_DELAY,
    DEFAULT_DELAY_FACTOR,
    ConfigurationError,
    RetryConfig,
    build_config,
    delay,
    delay_factor,
    max_attempts,
    on_retry,
    stop_retry_if,
)


class TestRetryConfigValidation:
    """Tests for RetryConfig validation."""

    def test_defaults(self):
        """Test default values"""
        config = RetryConfig()
        assert config.max_attempts == DEFAULT_ATTEMPTS == 10
        assert config.delay == DEFAULT_DELAY == 0.1
        assert config.delay_factor == DEFAULT_DELAY_FACTOR == 1
        assert config.stop_retry_if is None
        assert config.on_retry is None

    def test_max_attempts_negative(self):
        """Test max_attempts must not be negative"""
        with pytest.raises(ValidationError, match="max_attempts"):
            RetryConfig(max_attempts=-1)

    def test_max_attempts_too_high(self):
        """Test max_attempts above limit"""
        with pytest.raises(ValidationError, match="max_attempts"):
            RetryConfig(max_attempts=256)

    def test_max_attempts_upper_bound(self):
        """Test max_attempts accepts 255"""
        assert RetryConfig(max_attempts=255).max_attempts == 255

    def test_delay_negative(self):
        """Test negative delay"""
        with pytest.raises(ValidationError, match="delay"):
            RetryConfig(delay=-0.1)

    def test_delay_factor_negative(self):
        """Test negative delay_factor"""
        with pytest.raises(ValidationError, match="delay_factor"):
            RetryConfig(delay_factor=-1)

    def test_callbacks_must_be_callable(self):
        """Test stop_retry_if rejects non-callables"""
        with pytest.raises(ValidationError, match="stop_retry_if"):
            RetryConfig(stop_retry_if="not callable")

    def test_unknown_field(self):
        """Test unknown fields are rejected"""
        with pytest.raises(ValidationError):
            RetryConfig(jitter=0.1)

    def test_frozen(self):
        """Test config cannot be changed after construction"""
        config = RetryConfig()
        with pytest.raises(ValidationError):
            config.max_attempts = 3

    def test_delay_for(self):
        """Test delay grows linearly with the attempt number"""
        config = RetryConfig(delay=0.2, delay_factor=2)
        assert config.delay_for(1) == pytest.approx(0.4)
        assert config.delay_for(3) == pytest.approx(1.2)


class TestRetryConfigFromMapping:
    """Tests for building RetryConfig from plain dictionaries."""

    def test_preferred_keys(self):
        """Test preferred keys are used"""
        config = RetryConfig.from_mapping({"max_attempts": 4, "delay": 0.5, "delay_factor": 2})
        assert config.max_attempts == 4
        assert config.delay == 0.5
        assert config.delay_factor == 2

    def test_string_values_are_parsed(self):
        """Test numeric strings, as read from env or INI settings, are converted"""
        config = RetryConfig.from_mapping({"max_attempts": "5", "delay": "0.25", "delay_factor": "3"})
        assert config.max_attempts == 5
        assert config.delay == 0.25
        assert config.delay_factor == 3

    def test_other_keys_are_ignored(self):
        """Test only max_attempts, delay and delay_factor are read"""
        config = RetryConfig.from_mapping({"max_retries": 5, "retry_delay": 2, "backoff": 3})
        assert config == RetryConfig()

    def test_empty_mapping_uses_defaults(self):
        """Test empty mapping gives the defaults"""
        assert RetryConfig.from_mapping({}) == RetryConfig()

    def test_invalid_values_fall_back_to_defaults(self):
        """Test unparseable values fall back to defaults"""
        config = RetryConfig.from_mapping({"max_attempts": "many", "delay": "soon", "delay_factor": None})
        assert config.max_attempts == DEFAULT_ATTEMPTS
        assert config.delay == DEFAULT_DELAY
        assert config.delay_factor == DEFAULT_DELAY_FACTOR

    def test_out_of_range_values_are_clamped(self):
        """Test out-of-range values are clamped"""
        config = RetryConfig.from_mapping({"max_attempts": 1000, "delay": -1, "delay_factor": -2})
        assert config.max_attempts == 255
        assert config.delay == 0.0
        assert config.delay_factor == 0


class TestBuildConfig:
    """Tests for functional options."""

    def test_no_options_gives_defaults(self):
        """Test build_config without options"""
        assert build_config() == RetryConfig()

    def test_each_option_sets_its_field(self):
        """Test every option sets one field"""

        def stop(ctx, err):
            return False

        def hook(ctx, attempt):
            return None

        config = build_config(
            max_attempts(3),
            delay(0.5),
            delay_factor(2),
            stop_retry_if(stop),
            on_retry(hook),
        )
        assert config.max_attempts == 3
        assert config.delay == 0.5
        assert config.delay_factor == 2
        assert config.stop_retry_if is stop
        assert config.on_retry is hook

    def test_delay_accepts_timedelta(self):
        """Test delay option converts timedelta to seconds"""
        config = build_config(delay(timedelta(milliseconds=250)))
        assert config.delay == pytest.approx(0.25)

    def test_later_option_wins(self):
        """Test the last option for a field wins"""
        config = build_config(max_attempts(3), delay(1), max_attempts(7))
        assert config.max_attempts == 7
        assert config.delay == 1.0

    def test_invalid_option_raises_configuration_error(self):
        """Test invalid options are reported with field names"""
        with pytest.raises(ConfigurationError) as exc_info:
            build_config(max_attempts(300), delay_factor(-1))

        message = str(exc_info.value)
        assert "max_attempts" in message
        assert "delay_factor" in message
        assert isinstance(exc_info.value.__cause__, ValidationError)

    def test_overridden_invalid_value_is_not_validated(self):
        """Test only the final value of a field is validated"""
        config = build_config(max_attempts(-5), max_attempts(2))
        assert config.max_attempts == 2
