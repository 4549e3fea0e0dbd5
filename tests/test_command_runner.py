"""Tests for CommandRunner"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path

import pytest

from flatretry.application.command_runner import CommandFailedError, CommandRunner
from flatretry.domain.config import CommandConfig, RetryConfig
from flatretry.domain.errors import MaxRetriesReached


def _counting_script(counter: Path, fail_times: int, exit_code: int = 3) -> list[str]:
    """Command that exits with exit_code for its first fail_times runs, then prints 'done'"""
    code = (
        "import pathlib, sys\n"
        f"p = pathlib.Path({str(counter)!r})\n"
        "n = int(p.read_text()) if p.exists() else 0\n"
        "p.write_text(str(n + 1))\n"
        f"if n < {fail_times}:\n"
        "    print('attempt failed', file=sys.stderr)\n"
        f"    sys.exit({exit_code})\n"
        "print('done')\n"
    )
    return [sys.executable, "-c", code]


def _runs(counter: Path) -> int:
    return int(counter.read_text())


class TestCommandRunner:
    """Tests for running commands with retries"""

    def test_success_first_try(self):
        """Test a succeeding command runs once"""
        runner = CommandRunner(RetryConfig(max_tries=3))
        result = runner.run([sys.executable, "-c", "print('hello')"])

        assert result.is_successful
        assert result.returncode == 0
        assert result.stdout == "hello\n"
        assert result.attempts == 1
        assert not result.was_retried

    def test_retries_until_success(self, tmp_path):
        """Test a command failing twice succeeds on the third run"""
        counter = tmp_path / "count"
        runner = CommandRunner(RetryConfig(max_tries=3))

        result = runner.run(_counting_script(counter, fail_times=2))

        assert result.stdout == "done\n"
        assert result.attempts == 3
        assert result.was_retried
        assert _runs(counter) == 3

    def test_exhaustion(self, tmp_path):
        """Test a command that keeps failing exhausts max_tries"""
        counter = tmp_path / "count"
        runner = CommandRunner(RetryConfig(max_tries=2))

        with pytest.raises(MaxRetriesReached) as exc_info:
            runner.run(_counting_script(counter, fail_times=10, exit_code=4))

        cause = exc_info.value.cause
        assert isinstance(cause, CommandFailedError)
        assert isinstance(cause, subprocess.CalledProcessError)
        assert cause.returncode == 4
        assert "attempt failed" in cause.stderr
        assert _runs(counter) == 2

    def test_exit_code_not_in_retry_list(self, tmp_path):
        """Test an exit code outside retry_exit_codes fails immediately"""
        counter = tmp_path / "count"
        runner = CommandRunner(
            RetryConfig(max_tries=5),
            CommandConfig(retry_exit_codes=[75]),
        )

        with pytest.raises(CommandFailedError) as exc_info:
            runner.run(_counting_script(counter, fail_times=10, exit_code=2))

        assert exc_info.value.returncode == 2
        assert _runs(counter) == 1

    def test_exit_code_in_retry_list(self, tmp_path):
        """Test a listed exit code is retried"""
        counter = tmp_path / "count"
        runner = CommandRunner(
            RetryConfig(max_tries=5),
            CommandConfig(retry_exit_codes=[75]),
        )

        result = runner.run(_counting_script(counter, fail_times=1, exit_code=75))
        assert result.attempts == 2

    def test_missing_program_is_not_retried(self, tmp_path):
        """Test OSError from starting the process propagates"""
        runner = CommandRunner(RetryConfig(max_tries=5))
        with pytest.raises(FileNotFoundError):
            runner.run([str(tmp_path / "no-such-program")])

    def test_empty_command(self):
        """Test an empty command is rejected"""
        with pytest.raises(ValueError, match="empty"):
            CommandRunner().run([])

    def test_shell_mode(self):
        """Test shell mode runs the joined command through the shell"""
        runner = CommandRunner(command_config=CommandConfig(shell=True))
        result = runner.run(["echo", "one", "&&", "echo", "two"])
        assert result.stdout.split() == ["one", "two"]

    def test_shell_mode_does_not_quote_arguments(self):
        """Test shell mode hands arguments to the shell unquoted, like sh -c "$*" """
        runner = CommandRunner(command_config=CommandConfig(shell=True))

        quoted = runner.run(["printf", "'%s|'", "'a b'"])
        assert quoted.stdout == "a b|"

        # Without its own quoting, "a b" splits into two words
        unquoted = runner.run(["printf", "'%s|'", "a b"])
        assert unquoted.stdout == "a|b|"

    def test_retryer_replaced_by_exit_code_rules(self):
        """Test a custom retryer in the base config is replaced"""
        runner = CommandRunner(RetryConfig(retryer=lambda e: True))
        assert runner.retry_config.retryer == runner.is_retryable
        assert runner.is_retryable(ValueError("not a process error")) is False
        assert runner.is_retryable(CommandFailedError(1, ["x"])) is True
        assert runner.is_retryable(subprocess.CalledProcessError(1, ["x"])) is False
