"""Errors raised by the retry loop"""

from enum import Enum
from typing import Optional


class RetryErrorKind(str, Enum):
    """How a retry loop ended in failure"""

    TIMEOUT = "timeout"  # Deadline passed before another attempt could start
    EXHAUSTED = "exhausted"  # Retryable errors persisted past max_tries
    PROPAGATED = "propagated"  # Operation error the retryer refused to retry


class RetryError(Exception):
    """Base class for failures decided by the retry loop itself.

    Attributes:
        kind: Which terminal state produced the error
        cause: Last error raised by the operation, if any
    """

    kind: RetryErrorKind

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class RetryTimeoutError(RetryError):
    """Operation aborted because the timeout elapsed between attempts"""

    kind = RetryErrorKind.TIMEOUT

    def __init__(self, timeout: float, tries: int = 0):
        super().__init__(f"Operation aborted. Timeout of {timeout}s reached after {tries} tries")
        self.timeout = timeout
        self.tries = tries


class MaxRetriesReached(RetryError):
    """Operation aborted because every allowed attempt failed with a retryable error"""

    kind = RetryErrorKind.EXHAUSTED

    def __init__(self, tries: int, max_tries: int, cause: BaseException):
        super().__init__(
            f"Operation aborted. Too many errors: tries {tries} >= {max_tries}: {cause}",
            cause=cause,
        )
        self.tries = tries
        self.max_tries = max_tries


def error_kind(error: BaseException) -> RetryErrorKind:
    """Classify an error raised out of ``retry()``.

    Anything that is not a ``RetryError`` came from the operation unchanged.
    """
    if isinstance(error, RetryError):
        return error.kind
    return RetryErrorKind.PROPAGATED
