"""Retry configuration model."""

from datetime import timedelta
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_TIMEOUT = 15.0
DEFAULT_MAX_TRIES = 3


def retry_any(error: BaseException) -> bool:
    """Default retry predicate: every error is retryable"""
    return True


class RetryConfig(BaseModel):
    """Configuration for the retry loop.

    Instances are immutable. Each ``with_*`` method sets exactly one field and
    returns a new, validated config.

    Attributes:
        timeout: Seconds after which the loop aborts before starting another attempt
        max_tries: Maximum number of calls to the operation (first call included)
        sleep: Fixed delay in seconds after a failed, retryable attempt
        retryer: Predicate deciding whether an error should be retried
    """

    timeout: float = Field(DEFAULT_TIMEOUT, ge=0.0)
    max_tries: int = Field(DEFAULT_MAX_TRIES, gt=0)
    sleep: float = Field(0.0, ge=0.0)
    retryer: Callable[[BaseException], bool] = Field(retry_any, exclude=True)

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )

    @field_validator("timeout", "sleep", mode="before")
    @classmethod
    def _timedelta_to_seconds(cls, value: Any) -> Any:
        if isinstance(value, timedelta):
            return value.total_seconds()
        return value

    def with_options(self, **options: Any) -> "RetryConfig":
        """Return a copy with the given fields replaced

        Raises:
            ValidationError: If a value is invalid or a field is unknown
        """
        return type(self)(**{**dict(self), **options})

    def with_timeout(self, timeout: float) -> "RetryConfig":
        return self.with_options(timeout=timeout)

    def with_max_tries(self, max_tries: int) -> "RetryConfig":
        return self.with_options(max_tries=max_tries)

    def with_sleep(self, sleep: float) -> "RetryConfig":
        return self.with_options(sleep=sleep)

    def with_retryer(self, retryer: Callable[[BaseException], bool]) -> "RetryConfig":
        return self.with_options(retryer=retryer)
