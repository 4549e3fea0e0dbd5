"""Fixed-delay retry loop built on tenacity.

Every call to ``RetryExecutor.execute`` builds its own ``tenacity.Retrying``
controller, so concurrent calls never share attempt counters or deadlines.
"""

from __future__ import annotations

import functools
import logging
import time
from typing import Any, Callable, Optional, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    TryAgain,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from flatretry.domain.config.retry import RetryConfig
from flatretry.domain.errors import MaxRetriesReached, RetryTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _EscapedTryAgain(Exception):
    """Carries a TryAgain raised by the operation past tenacity's explicit-retry shortcut"""

    def __init__(self, error: TryAgain):
        super().__init__(repr(error))
        self.error = error


def _unwrap(error: BaseException) -> BaseException:
    if isinstance(error, _EscapedTryAgain):
        return error.error
    return error


class RetryExecutor:
    """Runs an operation until it succeeds, fails permanently, or runs out of budget"""

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize executor

        Args:
            config: Retry configuration (defaults apply if None)
            clock: Monotonic time source in seconds
            sleep: Blocking sleep used between attempts
        """
        self.config = config or RetryConfig()
        self._clock = clock
        self._sleep = sleep

    def execute(self, operation: Callable[[], T]) -> T:
        """Call ``operation`` until it returns.

        The deadline is only checked before an attempt starts, so a slow
        attempt (or the sleep after it) can overshoot ``timeout``. An attempt
        in flight is never interrupted.

        A ``tenacity.TryAgain`` escaping the operation is classified by the
        retryer like any other error.

        Args:
            operation: Zero-argument callable; raising means failure

        Returns:
            Whatever the first successful call returned

        Raises:
            RetryTimeoutError: If the deadline passed before the next attempt
            MaxRetriesReached: If ``max_tries`` attempts failed with retryable errors
            Exception: The operation's own error, unchanged, if it is not retryable
        """
        config = self.config
        deadline = self._clock() + config.timeout

        def _check_deadline(retry_state: RetryCallState) -> None:
            if self._clock() >= deadline:
                tries = retry_state.attempt_number - 1
                logger.debug(f"Retry timeout of {config.timeout}s reached after {tries} tries")
                raise RetryTimeoutError(config.timeout, tries)

        def _attempt() -> T:
            try:
                return operation()
            except TryAgain as e:
                raise _EscapedTryAgain(e) from None

        def _is_retryable(error: BaseException) -> bool:
            error = _unwrap(error)
            # KeyboardInterrupt, SystemExit and friends always propagate
            return isinstance(error, Exception) and bool(config.retryer(error))

        def _give_up(retry_state: RetryCallState) -> None:
            error = _unwrap(retry_state.outcome.exception())
            raise MaxRetriesReached(retry_state.attempt_number, config.max_tries, error) from error

        def _log_retry(retry_state: RetryCallState) -> None:
            error = _unwrap(retry_state.outcome.exception())
            logger.debug(
                f"Attempt {retry_state.attempt_number}/{config.max_tries} failed: {error!r}. Retrying..."
            )

        retrying = Retrying(
            stop=stop_after_attempt(config.max_tries),
            wait=wait_fixed(config.sleep),
            retry=retry_if_exception(_is_retryable),
            before=_check_deadline,
            before_sleep=_log_retry,
            retry_error_callback=_give_up,
            sleep=self._pause,
        )
        try:
            return retrying(_attempt)
        except _EscapedTryAgain as wrapper:
            error = wrapper.error
        # Outside the handler: the original error's __context__ stays untouched
        raise error

    def _pause(self, seconds: float) -> None:
        if seconds > 0:
            self._sleep(seconds)


def retry(operation: Callable[[], T], config: Optional[RetryConfig] = None, **options: Any) -> T:
    """Run ``operation`` through a ``RetryExecutor``.

    Args:
        operation: Zero-argument callable to retry
        config: Base configuration (defaults apply if None)
        **options: Field overrides (timeout, max_tries, sleep, retryer)

    Returns:
        Result of the first successful call
    """
    config = config or RetryConfig()
    if options:
        config = config.with_options(**options)
    return RetryExecutor(config).execute(operation)


def retryable(config: Optional[RetryConfig] = None, **options: Any) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Create a decorator that retries every call of the wrapped function.

    Configuration is validated once, when the decorator is created.
    """
    config = config or RetryConfig()
    if options:
        config = config.with_options(**options)

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapped(*args: Any, **kwargs: Any) -> T:
            return RetryExecutor(config).execute(functools.partial(func, *args, **kwargs))

        return wrapped

    return decorator
