"""Service for running external commands with retries"""

import logging
import subprocess
from typing import Optional, Sequence

from flatretry.domain.config.command import CommandConfig
from flatretry.domain.config.retry import RetryConfig
from flatretry.domain.models.command_result import CommandResult
from flatretry.infrastructure.retry import RetryExecutor

logger = logging.getLogger(__name__)


class CommandFailedError(subprocess.CalledProcessError):
    """A run of the command exited with a non-zero code"""

    pass


class CommandRunner:
    """Runs a command until it exits with 0, using a RetryExecutor for the loop"""

    def __init__(
        self,
        retry_config: Optional[RetryConfig] = None,
        command_config: Optional[CommandConfig] = None,
    ):
        """Initialize command runner

        Args:
            retry_config: Retry configuration (its retryer is replaced by exit code rules)
            command_config: Command configuration (uses default if None)
        """
        self.command_config = command_config or CommandConfig()
        self.retry_config = (retry_config or RetryConfig()).with_retryer(self.is_retryable)

    def is_retryable(self, error: BaseException) -> bool:
        """Check if a failed run should be started again

        Only non-zero exits (CommandFailedError) are retried. Errors starting the process (missing
        binary, permissions) are reported as-is.
        """
        if not isinstance(error, CommandFailedError):
            return False
        codes = self.command_config.retry_exit_codes
        if codes is None:
            return True
        return error.returncode in codes

    def run(self, command: Sequence[str]) -> CommandResult:
        """Run command with retries

        In shell mode the arguments are joined with spaces and handed to the
        shell unquoted, like ``sh -c "$*"``, so pipes and ``&&`` work and
        arguments containing spaces must carry their own shell quoting.

        Args:
            command: Program and arguments

        Returns:
            CommandResult of the successful run

        Raises:
            CommandFailedError: If the exit code is not retryable
            MaxRetriesReached: If every attempt exited with a retryable code
            RetryTimeoutError: If the timeout elapsed between attempts
            OSError: If the command could not be started
        """
        command = list(command)
        if not command:
            raise ValueError("command must not be empty")

        shell = self.command_config.shell
        args = " ".join(command) if shell else command
        attempts = 0

        def _attempt() -> subprocess.CompletedProcess:
            nonlocal attempts
            attempts += 1
            logger.debug(f"Running {command} (attempt {attempts}/{self.retry_config.max_tries})")
            completed = subprocess.run(args, shell=shell, capture_output=True, text=True)
            if completed.returncode != 0:
                logger.warning(
                    f"Command exited with {completed.returncode} "
                    f"(attempt {attempts}/{self.retry_config.max_tries})"
                )
            if completed.returncode != 0:
                raise CommandFailedError(
                    completed.returncode, args, output=completed.stdout, stderr=completed.stderr
                )
            return completed

        completed = RetryExecutor(self.retry_config).execute(_attempt)
        logger.info(f"Command succeeded after {attempts} attempt(s)")
        return CommandResult(
            command=command,
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
            attempts=attempts,
        )
