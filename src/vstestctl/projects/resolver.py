#
# src/vstestctl/projects/resolver.py
#
"""
Maps source files to their owning project and reads its build properties.
"""
import asyncio
import os
from pathlib import Path

import structlog

from vstestctl.exceptions import ProjectNotFoundError, ToolchainError
from vstestctl.notifier import UserNotifier
from vstestctl.projects.msbuild import (
    MsbuildOutputError,
    compile_items,
    is_project_file,
    parse_msbuild_json,
    select_target_framework,
)
from vstestctl.protocols import Toolchain, ToolchainResult
from vstestctl.state import ProjectInfo
from vstestctl.telemetry import StructLogger

log: StructLogger = structlog.get_logger("projects.resolver")

FRAMEWORK_PROPERTIES = ("TargetFramework", "TargetFrameworks")
PROJECT_PROPERTIES = ("TargetPath", "MSBuildProjectDirectory", "IsTestProject")


def find_project_file(path: str) -> str | None:
    """Walks upward from the directory of `path` to the nearest project manifest."""
    if is_project_file(path) and os.path.isfile(path):
        return path
    for directory in Path(path).parents:
        try:
            candidates = sorted(entry.name for entry in os.scandir(directory) if entry.is_file())
        except OSError:
            continue
        for name in candidates:
            if is_project_file(name):
                return str(directory / name)
    return None


class ProjectResolver:
    """
    Resolves ProjectInfo for source files, caching per project file.

    The cache is permanent for the lifetime of the resolver; call `clear()` to
    drop it. All cache reads and writes happen under a single exclusive lock.
    """

    def __init__(self, toolchain: Toolchain, notifier: UserNotifier | None = None):
        self.toolchain = toolchain
        self.notifier = notifier or UserNotifier()
        self.project_info: dict[str, ProjectInfo] = {}
        self.file_to_project: dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def resolve(self, source_path: str | os.PathLike[str]) -> ProjectInfo:
        """
        Returns the ProjectInfo of the project owning `source_path`.

        Raises ProjectNotFoundError when no project manifest encloses the file.
        Toolchain failures do not raise; they yield best-effort (empty) fields.
        """
        path = os.path.abspath(source_path)
        resolve_log = log.bind(path=path)

        async with self._lock:
            project_file = self._lookup(path)
            if project_file is None:
                resolve_log.debug("No project file found")
                raise ProjectNotFoundError(path)

            cached = self.project_info.get(project_file)
            if cached is not None:
                return cached

            resolve_log.debug("Resolving project metadata", project=project_file)
            info, compiled = await self._query_project(project_file)

            self.project_info[project_file] = info
            for compiled_file in compiled:
                self.file_to_project[compiled_file] = project_file
            resolve_log.info(
                "Resolved project",
                project=project_file,
                target_framework=info.target_framework,
                is_test_project=info.is_test_project,
                compiled_files=len(compiled),
            )
            return info

    def clear(self) -> None:
        self.project_info.clear()
        self.file_to_project.clear()

    def _lookup(self, path: str) -> str | None:
        project_file = self.file_to_project.get(path)
        if project_file is None:
            project_file = find_project_file(path)
            if project_file is not None:
                project_file = os.path.abspath(project_file)
                self.file_to_project[path] = project_file
        return project_file

    async def _query_project(self, project_file: str) -> tuple[ProjectInfo, list[str]]:
        framework_output = await self._query(
            project_file, "target framework", properties=FRAMEWORK_PROPERTIES
        )
        target_framework = select_target_framework(framework_output.get("Properties") or {})

        output = await self._query(
            project_file,
            "project properties",
            properties=PROJECT_PROPERTIES,
            items=("Compile",),
            global_properties={"TargetFramework": target_framework} if target_framework else None,
        )
        properties = output.get("Properties") or {}

        info = ProjectInfo(
            project_file=project_file,
            dll_file=str(properties.get("TargetPath") or ""),
            project_dir=str(properties.get("MSBuildProjectDirectory") or os.path.dirname(project_file)),
            target_framework=target_framework,
            is_test_project=str(properties.get("IsTestProject") or "").strip().lower() == "true",
        )
        if not info.dll_file:
            log.debug("No output artifact reported for project", project=project_file)
        return info, compile_items(output)

    async def _query(self, project_file: str, what: str, **query) -> dict:
        """Runs one msbuild query; failures are logged and notified, never raised."""
        try:
            result: ToolchainResult = await self.toolchain.msbuild_query(project_file, **query)
        except ToolchainError as e:
            self._report(f"Failed to get msbuild {what} for {project_file}: {e}")
            return {}

        log.debug("msbuild query output", project=project_file, what=what, stdout=result.stdout)
        if not result.success:
            self._report(
                f"Failed to get msbuild {what} for {project_file} with error: {result.stderr.strip() or result.stdout.strip()}"
            )
        try:
            return parse_msbuild_json(result.stdout)
        except MsbuildOutputError as e:
            self._report(f"Failed to parse msbuild {what} for {project_file} with error: {e}")
            return {}

    def _report(self, message: str) -> None:
        log.error(message)
        self.notifier.notify("ERROR", message)

# 🔼⚙️
