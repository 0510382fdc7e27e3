#
# src/vstestctl/runtime/factory.py
#
"""
Factory wiring a DiscoveryCoordinator from configuration.
"""
import os
from pathlib import Path

import structlog

from vstestctl.config.models import VstestCtlConfig
from vstestctl.notifier import UserNotifier
from vstestctl.projects import ProjectResolver, SolutionEnumerator
from vstestctl.runner import RunnerLocator, RunnerProcessManager
from vstestctl.runtime.coordinator import DiscoveryCoordinator
from vstestctl.toolchain import DotnetToolchain

log = structlog.get_logger("runtime.factory")


def create_coordinator(
    config: VstestCtlConfig,
    root: str | os.PathLike[str] | None = None,
    notifier: UserNotifier | None = None,
) -> DiscoveryCoordinator:
    """
    Builds a coordinator with the real dotnet toolchain and runner process.

    `root` wins over `config.workspace_root`, which wins over the working directory.
    """
    workspace_root = Path(root) if root is not None else (config.workspace_root or Path.cwd())
    notifier = notifier or UserNotifier()

    toolchain = DotnetToolchain(config.toolchain.dotnet_path)
    resolver = ProjectResolver(toolchain, notifier)
    enumerator = SolutionEnumerator(toolchain, resolver)
    runner = RunnerProcessManager(
        RunnerLocator(config.toolchain, toolchain),
        restart_on_exit=config.toolchain.restart_runner_on_exit,
    )

    log.debug("Instantiating coordinator", root=str(workspace_root), dotnet=config.toolchain.dotnet_path)
    return DiscoveryCoordinator(
        root=workspace_root,
        toolchain=toolchain,
        runner=runner,
        resolver=resolver,
        enumerator=enumerator,
        polling=config.polling,
        notifier=notifier,
    )

# 🔼⚙️
