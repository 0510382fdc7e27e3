#
# src/vstestctl/projects/solution.py
#
"""
Lists the test projects of a workspace, via its solution file when there is one.
"""
import asyncio
import os

import structlog

from vstestctl.exceptions import ProjectNotFoundError, ToolchainError
from vstestctl.projects.msbuild import is_project_file, is_solution_file
from vstestctl.projects.resolver import ProjectResolver
from vstestctl.protocols import Toolchain
from vstestctl.telemetry import StructLogger

log: StructLogger = structlog.get_logger("projects.solution")

# `dotnet sln list` prints "Project(s)" and a dashed rule before the paths.
SLN_LIST_HEADER_LINES = 2


def find_solution_file(root: str) -> str | None:
    """Returns the first solution file under `root`, checking root itself first."""
    for directory, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            if is_solution_file(name):
                return os.path.join(directory, name)
    return None


def find_project_files(root: str) -> list[str]:
    found = []
    for directory, dirnames, filenames in os.walk(root):
        dirnames.sort()
        found.extend(os.path.join(directory, name) for name in sorted(filenames) if is_project_file(name))
    return found


def parse_solution_listing(stdout: str, solution_dir: str) -> list[str]:
    """Turns `dotnet sln list` output into absolute project paths."""
    lines = stdout.splitlines()[SLN_LIST_HEADER_LINES:]
    return [os.path.abspath(os.path.join(solution_dir, line.strip())) for line in lines if line.strip()]


class SolutionEnumerator:
    """Finds and caches the test projects reachable from a root directory."""

    def __init__(self, toolchain: Toolchain, resolver: ProjectResolver):
        self.toolchain = toolchain
        self.resolver = resolver
        self.project_cache: dict[str, list[str]] = {}
        self._lock = asyncio.Lock()

    async def list_test_projects(self, root: str | os.PathLike[str]) -> list[str]:
        """Returns absolute paths of the test projects under `root`."""
        root = os.path.abspath(root)

        async with self._lock:
            cached = self.project_cache.get(root)
            if cached is not None:
                return list(cached)

            candidates = await self._candidate_projects(root)

            test_projects = []
            for project in candidates:
                if not os.path.isfile(project):
                    log.warning("Listed project file does not exist", project=project)
                    continue
                try:
                    info = await self.resolver.resolve(project)
                except ProjectNotFoundError:
                    continue
                if info.is_test_project:
                    test_projects.append(os.path.abspath(project))

            log.info("Found test projects", root=root, test_projects=test_projects)
            self.project_cache[root] = test_projects
            return list(test_projects)

    def clear(self) -> None:
        self.project_cache.clear()

    async def _candidate_projects(self, root: str) -> list[str]:
        solution = find_solution_file(root)
        if solution is None:
            log.info("Found no solution file, scanning for project files", root=root)
            return find_project_files(root)

        try:
            result = await self.toolchain.list_solution(solution)
        except ToolchainError as e:
            log.error("Failed to list solution projects", solution=solution, error=str(e))
            return []

        log.debug("dotnet sln list output", solution=solution, stdout=result.stdout)
        if not result.success:
            log.error(
                "dotnet sln list failed",
                solution=solution,
                exit_code=result.exit_code,
                stderr=result.stderr,
            )
        return parse_solution_listing(result.stdout, os.path.dirname(os.path.abspath(solution)))

# 🔼⚙️
