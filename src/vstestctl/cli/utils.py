# src/vstestctl/cli/utils.py

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, TypeVar

import click
import structlog

from vstestctl.config import VstestCtlConfig, load_config
from vstestctl.exceptions import ConfigurationError
from vstestctl.notifier import UserNotifier
from vstestctl.runtime import DiscoveryCoordinator, create_coordinator
from vstestctl.telemetry import setup_logging as core_setup_logging
from vstestctl.telemetry.logger.processors import level_name_to_number

log = structlog.get_logger("cli.utils")

LOG_LEVEL_CHOICES = click.Choice(list(logging._nameToLevel.keys()), case_sensitive=False)

T = TypeVar("T")


def logging_options(f):
    """Decorator to add logging options to any command."""
    f = click.option(
        "-l",
        "--log-level",
        type=LOG_LEVEL_CHOICES,
        default=None,
        envvar="VSTESTCTL_LOG_LEVEL",
        help="Set the logging level (overrides config file).",
    )(f)
    f = click.option(
        "--log-file",
        type=click.Path(dir_okay=False, writable=True, resolve_path=True),
        default=None,
        envvar="VSTESTCTL_LOG_FILE",
        help="Path to write logs to a file (JSON format).",
    )(f)
    f = click.option(
        "--json-logs",
        is_flag=True,
        default=None,
        envvar="VSTESTCTL_JSON_LOGS",
        help="Output console logs as JSON.",
    )(f)
    return f


def config_option(f):
    """Decorator adding -c/--config-path."""
    return click.option(
        "-c",
        "--config-path",
        type=click.Path(exists=True, file_okay=True, dir_okay=False, readable=True, path_type=Path),
        default=None,
        envvar="VSTESTCTL_CONF",
        help="Path to a vstestctl TOML configuration file (env var VSTESTCTL_CONF).",
        show_envvar=True,
    )(f)


def root_option(f):
    """Decorator adding --root for commands that build or enumerate the workspace."""
    return click.option(
        "-r",
        "--root",
        type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
        default=None,
        help="Workspace root holding the solution (defaults to config, then the working directory).",
    )(f)


def setup_logging_from_context(
    ctx: click.Context,
    local_log_level: str | None = None,
    local_log_file: str | None = None,
    local_json_logs: bool | None = None,
    default_log_level: str = "WARNING",
) -> None:
    """
    Setup logging using context values, allowing local overrides.
    """
    obj = ctx.obj or {}
    log_level_str = local_log_level or obj.get("LOG_LEVEL") or default_log_level
    log_file_path = local_log_file or obj.get("LOG_FILE")
    use_json_logs = local_json_logs if local_json_logs is not None else obj.get("JSON_LOGS", False)

    core_setup_logging(
        level=level_name_to_number(log_level_str),
        json_logs=use_json_logs,
        log_file=log_file_path,
        headless_mode=True,
    )

    log.debug(
        "CLI logging initialized via utils",
        level=log_level_str,
        file=log_file_path or "console",
        json=use_json_logs,
    )


def load_cli_config(ctx: click.Context, config_path: Path | None) -> VstestCtlConfig:
    """Loads configuration or exits with status 1 and a readable message."""
    try:
        return load_config(config_path)
    except ConfigurationError as e:
        log.error("Failed to load or validate configuration", error=str(e))
        click.echo(f"Error: Configuration problem: {e}", err=True)
        ctx.exit(1)


def echo_notification(level: str, message: str) -> None:
    click.echo(f"{level}: {message}", err=True)


def run_with_coordinator(
    ctx: click.Context,
    config: VstestCtlConfig,
    root: Path | None,
    action: Callable[[DiscoveryCoordinator], Awaitable[T]],
) -> T:
    """
    Runs `action` against a fresh coordinator inside asyncio.run(), always
    shutting the runner down afterwards.
    """

    async def _main() -> T:
        coordinator = create_coordinator(config, root=root, notifier=UserNotifier(echo_notification))
        try:
            return await action(coordinator)
        finally:
            await coordinator.close()

    try:
        return asyncio.run(_main())
    except KeyboardInterrupt:
        log.warning("Interrupted by KeyboardInterrupt (CTRL-C).")
        ctx.exit(130)


def pop_logging_kwargs(kwargs: dict[str, Any]) -> dict[str, Any]:
    return {
        "local_log_level": kwargs.pop("log_level", None),
        "local_log_file": kwargs.pop("log_file", None),
        "local_json_logs": kwargs.pop("json_logs", None),
    }

# ⚙️🛠️
