"""CLI interface for flatretry"""

import logging
import subprocess
import sys
from pathlib import Path
from typing import Optional, Tuple

import click
import yaml

from flatretry.application.command_runner import CommandRunner
from flatretry.domain.config import CommandConfig, RetryConfig
from flatretry.domain.errors import MaxRetriesReached, RetryTimeoutError
from flatretry.infrastructure.config.config_manager import ConfigManager, ConfigurationError

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger().setLevel(level)


def _die(message: str, verbose: bool = False, exc: Optional[Exception] = None) -> None:
    """Exit with a user-friendly error message"""
    if exc is not None:
        logger.error(message, exc_info=verbose)
    else:
        logger.error(message)
    raise click.ClickException(message)


def _load_config(ctx: click.Context) -> ConfigManager:
    try:
        return ConfigManager(config_path=ctx.obj.get("config_path"))
    except ConfigurationError as e:
        _die(str(e), verbose=ctx.obj.get("verbose", False), exc=e)


def _build_retry_config(
    base: RetryConfig,
    timeout: Optional[float],
    max_tries: Optional[int],
    sleep: Optional[float],
) -> RetryConfig:
    """Apply CLI overrides on top of the loaded retry configuration"""
    overrides = {
        "timeout": timeout,
        "max_tries": max_tries,
        "sleep": sleep,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    if not overrides:
        return base
    return base.with_options(**overrides)


def _build_command_config(
    base: CommandConfig,
    retry_exit_codes: Tuple[int, ...],
    shell: Optional[bool],
) -> CommandConfig:
    """Apply CLI overrides on top of the loaded command configuration"""
    updates = {}
    if retry_exit_codes:
        updates["retry_exit_codes"] = list(retry_exit_codes)
    if shell is not None:
        updates["shell"] = shell
    return CommandConfig(**{**base.model_dump(), **updates})


def _exit_code_for(error: Optional[BaseException]) -> int:
    """Map the error behind a failed run to a process exit code"""
    if isinstance(error, subprocess.CalledProcessError) and error.returncode > 0:
        return error.returncode
    return 1


def _echo_failed_output(error: Optional[BaseException]) -> None:
    if isinstance(error, subprocess.CalledProcessError):
        if error.stdout:
            click.echo(error.stdout, nl=False)
        if error.stderr:
            click.echo(error.stderr, nl=False, err=True)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to .flatretry.yml config file",
)
@click.pass_context
def cli(ctx, verbose: bool, config: Path):
    """flatretry - run commands with fixed-delay retries"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose


@cli.command(
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False}
)
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.option("--timeout", type=click.FloatRange(min=0), help="Seconds before giving up. Overrides config.")
@click.option("--max-tries", type=click.IntRange(min=1), help="Maximum number of runs. Overrides config.")
@click.option("--sleep", type=click.FloatRange(min=0), help="Seconds to wait between runs. Overrides config.")
@click.option(
    "--retry-exit-code",
    "retry_exit_codes",
    type=click.IntRange(min=1),
    multiple=True,
    help="Exit code that triggers a retry (repeatable). Default: any non-zero code.",
)
@click.option(
    "--shell/--no-shell",
    default=None,
    help='Run COMMAND through the shell, joined with spaces and unquoted (like sh -c "$*")',
)
@click.pass_context
def run(
    ctx,
    command: Tuple[str, ...],
    timeout: Optional[float],
    max_tries: Optional[int],
    sleep: Optional[float],
    retry_exit_codes: Tuple[int, ...],
    shell: Optional[bool],
):
    """Run a command, retrying it while it fails.

    COMMAND: Program and arguments (put them after "--")
    """
    verbose = ctx.obj.get("verbose", False)
    config_manager = _load_config(ctx)

    try:
        retry_config = _build_retry_config(config_manager.get_retry_config(), timeout, max_tries, sleep)
        command_config = _build_command_config(
            config_manager.get_command_config(), retry_exit_codes, shell
        )
    except ValueError as e:
        _die(f"Invalid options: {e}", verbose=verbose, exc=e)

    runner = CommandRunner(retry_config, command_config)
    logger.info(
        f"Running {' '.join(command)} (max tries: {retry_config.max_tries}, "
        f"timeout: {retry_config.timeout}s, sleep: {retry_config.sleep}s)"
    )

    try:
        result = runner.run(command)
    except MaxRetriesReached as e:
        _echo_failed_output(e.cause)
        click.echo(f"ERROR: {e}", err=True)
        sys.exit(_exit_code_for(e.cause))
    except RetryTimeoutError as e:
        click.echo(f"ERROR: {e}", err=True)
        sys.exit(1)
    except subprocess.CalledProcessError as e:
        _echo_failed_output(e)
        click.echo(f"ERROR: command failed with non-retryable exit code {e.returncode}", err=True)
        sys.exit(_exit_code_for(e))
    except OSError as e:
        _die(f"Cannot start command: {e}", verbose=verbose, exc=e)

    if result.stdout:
        click.echo(result.stdout, nl=False)
    if result.stderr:
        click.echo(result.stderr, nl=False, err=True)


@cli.command()
@click.pass_context
def config(ctx):
    """Show the effective configuration as YAML."""
    config_manager = _load_config(ctx)
    click.echo(yaml.safe_dump(config_manager.config.model_dump(), sort_keys=False), nl=False)


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()
