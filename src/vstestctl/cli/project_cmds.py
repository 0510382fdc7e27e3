# src/vstestctl/cli/project_cmds.py

"""
Commands that inspect project metadata without running any tests.
"""

from pathlib import Path

import click
import structlog

from vstestctl.cli.utils import (
    config_option,
    load_cli_config,
    logging_options,
    pop_logging_kwargs,
    root_option,
    run_with_coordinator,
    setup_logging_from_context,
)
from vstestctl.exceptions import ProjectNotFoundError
from vstestctl.runtime import DiscoveryCoordinator
from vstestctl.state import ProjectInfo
from vstestctl.telemetry import StructLogger

log: StructLogger = structlog.get_logger("cli.projects")


@click.command(name="info")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@config_option
@logging_options
@click.pass_context
def info_cli(ctx: click.Context, path: Path, config_path: Path | None, **kwargs):
    """Show the project that owns PATH and its build properties."""
    setup_logging_from_context(ctx, **pop_logging_kwargs(kwargs))
    config = load_cli_config(ctx, config_path)

    async def _resolve(coordinator: DiscoveryCoordinator) -> ProjectInfo | None:
        try:
            return await coordinator.resolver.resolve(path)
        except ProjectNotFoundError:
            return None

    info = run_with_coordinator(ctx, config, None, _resolve)
    if info is None:
        click.echo(f"No project file found for '{path}'", err=True)
        ctx.exit(1)

    click.echo(f"project:          {info.project_file}")
    click.echo(f"output:           {info.dll_file or '-'}")
    click.echo(f"directory:        {info.project_dir or '-'}")
    click.echo(f"target framework: {info.target_framework or '-'}")
    click.echo(f"test project:     {'yes' if info.is_test_project else 'no'}")


@click.command(name="projects")
@root_option
@config_option
@logging_options
@click.pass_context
def projects_cli(ctx: click.Context, root: Path | None, config_path: Path | None, **kwargs):
    """List the test projects of the workspace root."""
    setup_logging_from_context(ctx, **pop_logging_kwargs(kwargs))
    config = load_cli_config(ctx, config_path)

    async def _list(coordinator: DiscoveryCoordinator) -> list[str]:
        return await coordinator.enumerator.list_test_projects(coordinator.root)

    projects = run_with_coordinator(ctx, config, root, _list)
    if not projects:
        log.warning("No test projects found")
    for project in projects:
        click.echo(project)

# 🔼⚙️
