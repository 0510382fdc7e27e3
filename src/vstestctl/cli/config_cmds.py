# src/vstestctl/cli/config_cmds.py

from pathlib import Path

import click
import structlog
from rich.pretty import pretty_repr

from vstestctl.cli.utils import (
    config_option,
    load_cli_config,
    logging_options,
    pop_logging_kwargs,
    setup_logging_from_context,
)
from vstestctl.telemetry import StructLogger

log: StructLogger = structlog.get_logger("cli.config")


@click.group(name="config")
def config_cli():
    """Commands for inspecting and validating configuration."""
    pass


@config_cli.command(name="show")
@config_option
@logging_options
@click.pass_context
def show_config(ctx: click.Context, config_path: Path | None, **kwargs):
    """Load, validate, and display the configuration."""
    setup_logging_from_context(ctx, **pop_logging_kwargs(kwargs))
    log.info("Executing 'config show' command", config_path=str(config_path))

    config = load_cli_config(ctx, config_path)
    click.echo(pretty_repr(config, expand_all=True))

    if config.toolchain.runner_script is None and not config.toolchain.script_search_paths:
        log.warning("No runner script configured; runs and discovery will fail until one is set.")

# 🔼⚙️
