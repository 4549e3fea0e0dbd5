"""CommandResult model - represents the final run of a retried command"""

from dataclasses import dataclass
from typing import List


@dataclass
class CommandResult:
    """Result of running an external command"""

    command: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    attempts: int = 1  # Number of times the command was started

    @property
    def is_successful(self) -> bool:
        """Check if the command exited cleanly"""
        return self.returncode == 0

    @property
    def was_retried(self) -> bool:
        """Check if the command needed more than one run"""
        return self.attempts > 1
