# src/vstestctl/runtime/coordinator.py

"""
Top-level API: build projects, drive the runner and collect its results.

Every operation follows the same shape: make sure the build is fresh, send
the runner a command naming scratch files unique to the request, poll for
those files, parse them.
"""

import json
import os
import shutil
import tempfile
import uuid
from collections.abc import Iterable, Sequence
from typing import Any

import structlog

from vstestctl.config.models import PollingConfig
from vstestctl.exceptions import ProjectNotFoundError, RunnerError, ToolchainError
from vstestctl.notifier import UserNotifier
from vstestctl.projects import ProjectResolver, SolutionEnumerator
from vstestctl.protocols import CommandChannel, DiscoveryResult, DiscoveryStatus, Toolchain
from vstestctl.runner.commands import debug_tests_command, discover_command, run_tests_command
from vstestctl.runtime.polling import FilePoller
from vstestctl.state import DiscoveryState, ProjectInfo, TestCase, TestCaseMap
from vstestctl.telemetry import StructLogger

log: StructLogger = structlog.get_logger("runtime.coordinator")


def artifact_mtime(path: str | None) -> float | None:
    """Modification time of a build artifact in seconds, or None if it does not exist."""
    if not path:
        return None
    try:
        return os.stat(path).st_mtime
    except OSError:
        return None


def parse_discovery_output(content: str) -> dict[str, TestCaseMap]:
    """
    Parses the runner's discovery file: {source file: {test id: test case}}.

    Raises ValueError when the content does not have that shape.
    """
    raw = json.loads(content)
    if not isinstance(raw, dict):
        raise ValueError(f"Expected a JSON object, got {type(raw).__name__}")
    discovered: dict[str, TestCaseMap] = {}
    for source_file, cases in raw.items():
        if not isinstance(cases, dict):
            raise ValueError(f"Expected test cases for '{source_file}' to be an object")
        discovered[source_file] = {
            test_id: TestCase.from_json(case) for test_id, case in cases.items() if isinstance(case, dict)
        }
    return discovered


class DiscoveryCoordinator:
    """Owns the discovery caches and orchestrates resolver, toolchain and runner."""

    def __init__(
        self,
        root: str | os.PathLike[str],
        toolchain: Toolchain,
        runner: CommandChannel,
        resolver: ProjectResolver | None = None,
        enumerator: SolutionEnumerator | None = None,
        polling: PollingConfig | None = None,
        notifier: UserNotifier | None = None,
        scratch_dir: str | None = None,
    ):
        self.root = os.path.abspath(root)
        self.toolchain = toolchain
        self.runner = runner
        self.notifier = notifier or UserNotifier()
        self.resolver = resolver or ProjectResolver(toolchain, self.notifier)
        self.enumerator = enumerator or SolutionEnumerator(toolchain, self.resolver)
        self.polling = polling or PollingConfig()
        self.poller = FilePoller(self.polling.interval)
        self.state = DiscoveryState()
        self._scratch_dir = scratch_dir
        self._owns_scratch_dir = scratch_dir is None
        log.debug("DiscoveryCoordinator initialized.", root=self.root)

    # --- Discovery ---

    async def discover(self, source_path: str | os.PathLike[str]) -> DiscoveryResult:
        """Returns the test cases declared in `source_path`, discovering them if the cache is stale."""
        path = os.path.abspath(source_path)
        discover_log = log.bind(path=path)

        try:
            info = await self.resolver.resolve(path)
        except ProjectNotFoundError:
            discover_log.warning("No project file found, skipping discovery")
            return DiscoveryResult.not_found(f"No project file found for '{path}'")

        project = info.project_file
        if not self.state.is_fresh(project, artifact_mtime(info.dll_file)):
            await self._build(project)
            info = await self.resolver.resolve(path)

        if not info.dll_file:
            discover_log.warning("Project has no output artifact", project=project)
            return DiscoveryResult.not_found(f"No output artifact for '{project}'")

        if self.state.is_fresh(project, artifact_mtime(info.dll_file)):
            discover_log.debug("Serving test cases from cache", project=project)
            return DiscoveryResult(
                status=DiscoveryStatus.FOUND, tests=self.state.tests_for(path), from_cache=True
            )

        scope = await self._discovery_scope(info)
        return await self._run_discovery(path, scope)

    async def _discovery_scope(self, info: ProjectInfo) -> list[ProjectInfo]:
        if not self.state.is_cold:
            return [info]

        # Nothing cached yet: seed the cache with every test project at once.
        projects = await self.enumerator.list_test_projects(self.root)
        scope = [info]
        for project in projects:
            if project == info.project_file:
                continue
            try:
                scope.append(await self.resolver.resolve(project))
            except ProjectNotFoundError:
                log.warning("Test project vanished before discovery", project=project)
        log.info("Cold discovery", root=self.root, projects=len(scope), emoji_key="discover")
        return scope

    async def _run_discovery(self, path: str, scope: Sequence[ProjectInfo]) -> DiscoveryResult:
        recorded: list[str] = []
        dll_files: list[str] = []
        for info in scope:
            mtime = artifact_mtime(info.dll_file)
            if mtime is None:
                log.debug("Skipping project without a built artifact", project=info.project_file)
                continue
            # Recorded before the runner starts, so a rebuild during discovery reads as stale later.
            self.state.record_discovery(info.project_file, mtime)
            recorded.append(info.project_file)
            dll_files.append(info.dll_file)

        if not dll_files:
            log.warning("No built artifacts to discover tests in", path=path)
            return DiscoveryResult.not_found(f"No built artifact for '{path}'")

        output_file = self.new_scratch_path("discovery")
        signal_file = self.new_scratch_path("discovery-signal")

        try:
            await self.runner.invoke(discover_command(output_file, signal_file, dll_files))
        except (RunnerError, ValueError) as e:
            self.state.forget_discovery(recorded)
            self._report(f"Could not submit test discovery: {e}")
            return DiscoveryResult.failed(str(e))

        log.debug("Waiting for discovery results", output_file=output_file, dlls=dll_files)
        timeout = self.polling.discovery_timeout
        if await self.poller.wait_for_file(signal_file, timeout) is None:
            self.state.forget_discovery(recorded)
            log.warning("Discovery did not signal completion", path=path, timeout=timeout)
            return DiscoveryResult.timed_out(f"Discovery did not complete within {timeout}s")

        content = await self.poller.wait_for_file(output_file, timeout)
        if content is None:
            self.state.forget_discovery(recorded)
            if os.path.exists(output_file):
                log.error("Discovery output could not be read", path=path, output_file=output_file)
                return DiscoveryResult.failed("Unreadable discovery output (not valid UTF-8)")
            log.warning("Discovery output never appeared", path=path, output_file=output_file)
            return DiscoveryResult.timed_out(f"Discovery output did not appear within {timeout}s")

        try:
            discovered = parse_discovery_output(content)
        except ValueError as e:
            self.state.forget_discovery(recorded)
            log.error("Malformed discovery output", output_file=output_file, error=str(e))
            return DiscoveryResult.failed(f"Malformed discovery output: {e}")

        self.state.merge(discovered)
        tests = self.state.tests_for(path)
        log.info("Discovered tests", path=path, files=len(discovered), tests=len(tests), emoji_key="discover")
        return DiscoveryResult(status=DiscoveryStatus.FOUND, tests=tests)

    # --- Execution ---

    async def run_tests(
        self,
        stream_path: str,
        output_path: str,
        process_output_path: str,
        ids: Iterable[str],
    ) -> str | None:
        """
        Builds, then asks the runner to execute `ids`.

        Returns `output_path` as soon as the command is submitted; the caller
        awaits that file (see `wait_for_run_results`) while it may read
        partial results from `stream_path`. Returns None if submission failed.
        """
        ids = list(ids)
        await self._build(None)
        try:
            await self.runner.invoke(run_tests_command(stream_path, output_path, process_output_path, ids))
        except (RunnerError, ValueError) as e:
            self._report(f"Could not submit test run: {e}")
            return None
        log.info("Submitted test run", tests=len(ids), output_path=output_path)
        return output_path

    async def wait_for_run_results(self, output_path: str, timeout: float | None = None) -> dict[str, Any] | None:
        """Waits for a run's output file and parses it; None on timeout or bad content."""
        content = await self.poller.wait_for_file(output_path, timeout or self.polling.run_timeout)
        if content is None:
            return None
        try:
            results = json.loads(content)
        except json.JSONDecodeError as e:
            log.error("Malformed test results", output_path=output_path, error=str(e))
            return None
        if not isinstance(results, dict):
            log.error("Unexpected test results shape", output_path=output_path, type=type(results).__name__)
            return None
        return results

    async def debug_tests(
        self,
        attached_path: str,
        stream_path: str,
        output_path: str,
        ids: Iterable[str],
    ) -> str | None:
        """Starts `ids` under a debuggable test host and returns its process id, or None."""
        ids = list(ids)
        await self._build(None)
        process_output_file = self.new_scratch_path("process-output")
        pid_file = self.new_scratch_path("pid")

        try:
            await self.runner.invoke(
                debug_tests_command(pid_file, attached_path, stream_path, output_path, process_output_file, ids)
            )
        except (RunnerError, ValueError) as e:
            self._report(f"Could not submit debug session: {e}")
            return None

        content = await self.poller.wait_for_file(pid_file, self.polling.debug_timeout)
        if content is None:
            log.warning("Test host did not report a process id", pid_file=pid_file)
            return None
        pid = content.strip()
        log.info("Test host waiting for debugger", pid=pid)
        return pid

    # --- Housekeeping ---

    def new_scratch_path(self, kind: str) -> str:
        """A path no other request will ever use; the file itself is not created."""
        if self._scratch_dir is None:
            self._scratch_dir = tempfile.mkdtemp(prefix="vstestctl-")
        return os.path.join(self._scratch_dir, f"{kind}-{uuid.uuid4().hex}")

    def clear_cache(self) -> None:
        self.state.clear()
        self.resolver.clear()
        self.enumerator.clear()
        log.info("Cleared all caches")

    async def close(self) -> None:
        close = getattr(self.runner, "close", None)
        if close is not None:
            await close()
        if self._owns_scratch_dir and self._scratch_dir is not None:
            shutil.rmtree(self._scratch_dir, ignore_errors=True)
            self._scratch_dir = None

    async def _build(self, target: str | None) -> bool:
        """Runs `dotnet build`; failures are reported but never stop the caller."""
        try:
            result = await self.toolchain.build(target, cwd=self.root)
        except ToolchainError as e:
            self._report(f"dotnet build could not be started: {e}")
            return False
        if not result.success:
            log.error("Build output", target=target, stdout=result.stdout, stderr=result.stderr)
            self._report(f"dotnet build failed for {target or self.root} (exit code {result.exit_code})")
            return False
        return True

    def _report(self, message: str) -> None:
        log.error(message)
        self.notifier.notify("ERROR", message)

# 🔼⚙️
