"""Main application configuration model."""

from pydantic import BaseModel, ConfigDict, Field

from flatretry.domain.config.command import CommandConfig
from flatretry.domain.config.retry import RetryConfig


class AppConfig(BaseModel):
    """Main application configuration.

    This is the root configuration model that aggregates all configuration sections.
    Validation is performed at load time to fail fast on configuration errors.

    Attributes:
        retry: Retry loop configuration
        command: External command configuration
    """

    retry: RetryConfig = Field(default_factory=RetryConfig)
    command: CommandConfig = Field(default_factory=CommandConfig)

    model_config = ConfigDict(
        validate_assignment=True,  # Validate on attribute assignment
        extra="forbid",  # Reject unknown fields
        json_schema_extra={
            "example": {
                "retry": {
                    "timeout": 15.0,
                    "max_tries": 3,
                    "sleep": 0.0,
                },
                "command": {
                    "retry_exit_codes": None,
                    "shell": False,
                },
            }
        },
    )
