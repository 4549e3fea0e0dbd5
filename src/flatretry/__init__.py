"""flatretry - fixed-delay retries for fallible operations"""

from flatretry.domain.config.retry import (
    DEFAULT_MAX_TRIES,
    DEFAULT_TIMEOUT,
    RetryConfig,
    retry_any,
)
from flatretry.domain.errors import (
    MaxRetriesReached,
    RetryError,
    RetryErrorKind,
    RetryTimeoutError,
    error_kind,
)
from flatretry.infrastructure.retry import RetryExecutor, retry, retryable

__all__ = [
    "DEFAULT_MAX_TRIES",
    "DEFAULT_TIMEOUT",
    "RetryConfig",
    "retry_any",
    "MaxRetriesReached",
    "RetryError",
    "RetryErrorKind",
    "RetryTimeoutError",
    "error_kind",
    "RetryExecutor",
    "retry",
    "retryable",
]
