"""Configuration models with Pydantic validation."""

from flatretry.domain.config.app import AppConfig
from flatretry.domain.config.command import CommandConfig
from flatretry.domain.config.retry import (
    DEFAULT_MAX_TRIES,
    DEFAULT_TIMEOUT,
    RetryConfig,
    retry_any,
)

__all__ = [
    "AppConfig",
    "CommandConfig",
    "RetryConfig",
    "DEFAULT_MAX_TRIES",
    "DEFAULT_TIMEOUT",
    "retry_any",
]
