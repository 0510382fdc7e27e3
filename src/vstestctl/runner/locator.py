#
# src/vstestctl/runner/locator.py
#
"""
Finds the runner script and vstest.console.dll needed to launch the runner.
"""
import os
import re
from pathlib import Path

import structlog
from attrs import define

from vstestctl.config.models import ToolchainConfig
from vstestctl.exceptions import RunnerError, ToolchainError
from vstestctl.toolchain import DotnetToolchain

log = structlog.get_logger("runner.locator")

RUNNER_SCRIPT_NAME = "run_tests.fsx"
VSTEST_CONSOLE_NAME = "vstest.console.dll"

KNOWN_DOTNET_ROOTS = (
    "/usr/local/share/dotnet",
    "/usr/share/dotnet",
    "/usr/lib/dotnet",
    "~/.dotnet",
    "C:/Program Files/dotnet",
)


@define(frozen=True, slots=True)
class RunnerLaunchSpec:
    """Everything needed to spawn the runner process."""
    dotnet_path: str
    script: Path
    vstest_console: Path

    @property
    def command(self) -> list[str]:
        return [self.dotnet_path, "fsi", str(self.script), str(self.vstest_console)]


def _version_key(name: str) -> tuple[int, ...]:
    return tuple(int(part) for part in re.findall(r"\d+", name))


def scan_sdk_installs(roots: tuple[str, ...] = KNOWN_DOTNET_ROOTS) -> Path | None:
    """Returns vstest.console.dll from the newest SDK found under the known roots."""
    env_root = os.environ.get("DOTNET_ROOT")
    search = ((env_root,) if env_root else ()) + roots
    for root in search:
        sdk_dir = Path(root).expanduser() / "sdk"
        if not sdk_dir.is_dir():
            continue
        versions = sorted((p for p in sdk_dir.iterdir() if p.is_dir()), key=lambda p: _version_key(p.name), reverse=True)
        for version_dir in versions:
            candidate = version_dir / VSTEST_CONSOLE_NAME
            if candidate.is_file():
                return candidate
    return None


class RunnerLocator:
    """Resolves a RunnerLaunchSpec from configuration and the installed SDK."""

    def __init__(self, config: ToolchainConfig, toolchain: DotnetToolchain | None = None):
        self.config = config
        self.toolchain = toolchain or DotnetToolchain(config.dotnet_path)

    async def locate(self) -> RunnerLaunchSpec:
        script = self.find_script()
        if script is None:
            raise RunnerError(
                f"Could not find {RUNNER_SCRIPT_NAME}; set toolchain.runner_script "
                "or add its directory to toolchain.script_search_paths"
            )
        vstest_console = await self.find_vstest_console()
        if vstest_console is None:
            raise RunnerError(f"Could not find {VSTEST_CONSOLE_NAME}; set toolchain.vstest_console or toolchain.sdk_path")

        spec = RunnerLaunchSpec(dotnet_path=self.config.dotnet_path, script=script, vstest_console=vstest_console)
        log.debug("Located runner", script=str(script), vstest_console=str(vstest_console))
        return spec

    def find_script(self) -> Path | None:
        if self.config.runner_script is not None:
            return self.config.runner_script if self.config.runner_script.is_file() else None
        for directory in self.config.script_search_paths:
            candidate = directory / RUNNER_SCRIPT_NAME
            if candidate.is_file():
                return candidate
        return None

    async def find_vstest_console(self) -> Path | None:
        if self.config.vstest_console is not None:
            return self.config.vstest_console if self.config.vstest_console.is_file() else None

        sdk_path = self.config.sdk_path
        if sdk_path is None:
            try:
                info = await self.toolchain.info()
            except ToolchainError as e:
                log.warning("Could not query dotnet for its SDK path", error=str(e))
            else:
                sdk_path = Path(info.sdk_path) if info.sdk_path else None

        if sdk_path is not None and (candidate := sdk_path / VSTEST_CONSOLE_NAME).is_file():
            return candidate

        return scan_sdk_installs()

# 🔼⚙️
