#
# src/vstestctl/toolchain/dotnet.py
#
"""
Async wrapper over the dotnet CLI using asyncio.subprocess.
"""
import asyncio
import re
from collections.abc import Mapping, Sequence
from pathlib import Path

import structlog
from attrs import define

from vstestctl.exceptions import ToolchainError
from vstestctl.protocols import Toolchain, ToolchainResult

log = structlog.get_logger("toolchain.dotnet")

_BASE_PATH_RE = re.compile(r"Base Path:\s*(\S[^\n]*)")


@define(frozen=True, slots=True)
class DotnetInfo:
    """The parts of `dotnet --info` vstestctl cares about."""
    sdk_path: str | None = None


def parse_dotnet_info(output: str | None) -> DotnetInfo:
    """Extracts the active SDK directory from `dotnet --info` output."""
    if output is None:
        return DotnetInfo()
    match = _BASE_PATH_RE.search(output)
    return DotnetInfo(sdk_path=match.group(1).strip() if match else None)


class DotnetToolchain(Toolchain):
    """
    Implements the Toolchain protocol by executing `dotnet` in a subprocess.
    """
    def __init__(self, dotnet_path: str = "dotnet"):
        self.dotnet_path = dotnet_path

    async def run(self, args: Sequence[str], cwd: Path | None = None) -> ToolchainResult:
        """
        Runs `dotnet <args>` to completion and captures its output.

        A non-zero exit is returned, not raised; only a missing executable raises.
        """
        command = [self.dotnet_path, *args]
        run_log = log.bind(command=" ".join(command), cwd=str(cwd) if cwd else None)
        run_log.debug("Executing toolchain command")

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
            )
            stdout_bytes, stderr_bytes = await process.communicate()
        except FileNotFoundError as e:
            run_log.error("Toolchain executable not found", executable=self.dotnet_path)
            raise ToolchainError(
                f"'{self.dotnet_path}' not found. Is the .NET SDK installed and in the system's PATH?",
                command=command,
                details=e,
            ) from e
        except OSError as e:
            run_log.error("Failed to start toolchain command", error=str(e))
            raise ToolchainError("Failed to start toolchain command", command=command, details=e) from e

        exit_code = process.returncode if process.returncode is not None else -1
        result = ToolchainResult(
            exit_code=exit_code,
            stdout=stdout_bytes.decode("utf-8", errors="replace"),
            stderr=stderr_bytes.decode("utf-8", errors="replace"),
        )
        run_log.debug(
            "Toolchain command finished",
            exit_code=exit_code,
            stdout_len=len(result.stdout),
            stderr_len=len(result.stderr),
        )
        return result

    async def build(self, target: str | None = None, cwd: Path | None = None) -> ToolchainResult:
        args = ["build"]
        if target:
            args.append(target)
        log.info("Building", target=target or str(cwd or "."), emoji_key="build")
        return await self.run(args, cwd=cwd)

    async def msbuild_query(
        self,
        project_file: str,
        properties: Sequence[str] = (),
        items: Sequence[str] = (),
        global_properties: Mapping[str, str] | None = None,
    ) -> ToolchainResult:
        args = ["msbuild", project_file]
        args.extend(f"-getItem:{item}" for item in items)
        args.extend(f"-getProperty:{prop}" for prop in properties)
        for key, value in (global_properties or {}).items():
            args.append(f"-property:{key}={value}")
        return await self.run(args)

    async def list_solution(self, solution_file: str) -> ToolchainResult:
        return await self.run(["sln", solution_file, "list"])

    async def info(self) -> DotnetInfo:
        result = await self.run(["--info"])
        if not result.success:
            log.warning("`dotnet --info` failed", exit_code=result.exit_code)
            return DotnetInfo()
        return parse_dotnet_info(result.stdout)

# 🔼⚙️
