# src/vstestctl/cli/main.py

"""
Main CLI entry point for vstestctl using Click.
Handles global options like logging level.
"""

import click
import structlog

from vstestctl import __version__
from vstestctl.cli.config_cmds import config_cli
from vstestctl.cli.project_cmds import info_cli, projects_cli
from vstestctl.cli.test_cmds import debug_cli, discover_cli, run_cli
from vstestctl.cli.utils import logging_options, setup_logging_from_context
from vstestctl.telemetry import StructLogger

log: StructLogger = structlog.get_logger("cli.main")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "-V", "--version", package_name="vstestctl")
@logging_options
@click.pass_context
def cli(
    ctx: click.Context,
    log_level: str | None,
    log_file: str | None,
    json_logs: bool | None,
):
    """
    vstestctl: discover, run and debug .NET tests through a long-lived vstest runner.

    Configuration precedence: CLI options > Environment Variables > Config File > Defaults.
    """
    ctx.ensure_object(dict)

    ctx.obj["LOG_LEVEL"] = log_level
    ctx.obj["LOG_FILE"] = log_file
    ctx.obj["JSON_LOGS"] = json_logs if json_logs is not None else False

    setup_logging_from_context(ctx)
    log.debug(
        "Main CLI group initialized",
        log_level=log_level,
        log_file=log_file,
        json_logs=json_logs,
    )


cli.add_command(config_cli)
cli.add_command(info_cli)
cli.add_command(projects_cli)
cli.add_command(discover_cli)
cli.add_command(run_cli)
cli.add_command(debug_cli)

if __name__ == "__main__":
    cli()

# 🖥️⚙️
