"""Command configuration model."""

from typing import List, Optional

from pydantic import BaseModel, field_validator


class CommandConfig(BaseModel):
    """Configuration for retrying external commands.

    Attributes:
        retry_exit_codes: Exit codes that trigger another attempt (None = any non-zero code)
        shell: Whether to run the command through the shell
    """

    retry_exit_codes: Optional[List[int]] = None
    shell: bool = False

    @field_validator("retry_exit_codes")
    @classmethod
    def _no_zero_exit_code(cls, value: Optional[List[int]]) -> Optional[List[int]]:
        if value is not None and 0 in value:
            raise ValueError("exit code 0 means success and cannot be retried")
        return value
