import asyncio
import json
import os
from pathlib import Path
from typing import Any

import pytest

from vstestctl.config import PollingConfig
from vstestctl.notifier import UserNotifier
from vstestctl.protocols import ToolchainResult
from vstestctl.runtime import DiscoveryCoordinator


class FakeToolchain:
    """Scripted stand-in for `dotnet`; records every invocation."""

    def __init__(self):
        self.calls: list[tuple[Any, ...]] = []
        self.projects: dict[str, dict[str, Any]] = {}
        self.solutions: dict[str, str] = {}
        self.build_exit_code = 0

    def add_project(
        self,
        project_file: str,
        dll_file: str = "",
        *,
        is_test: bool = True,
        target_framework: str = "net8.0",
        target_frameworks: str = "",
        compile: tuple[str, ...] = (),
        framework_stdout: str | None = None,
        exit_code: int = 0,
    ) -> None:
        self.projects[project_file] = {
            "dll_file": dll_file,
            "is_test": is_test,
            "target_framework": target_framework,
            "target_frameworks": target_frameworks,
            "compile": list(compile),
            "framework_stdout": framework_stdout,
            "exit_code": exit_code,
        }

    def count(self, kind: str) -> int:
        return sum(1 for call in self.calls if call[0] == kind)

    async def build(self, target: str | None = None, cwd: Path | None = None) -> ToolchainResult:
        self.calls.append(("build", target))
        await asyncio.sleep(0)
        targets = [target] if target else list(self.projects)
        for project in targets:
            dll = self.projects.get(project, {}).get("dll_file")
            if dll and not os.path.exists(dll):
                os.makedirs(os.path.dirname(dll), exist_ok=True)
                Path(dll).write_bytes(b"MZ")
        return ToolchainResult(self.build_exit_code, "", "build failed" if self.build_exit_code else "")

    async def msbuild_query(self, project_file, properties=(), items=(), global_properties=None) -> ToolchainResult:
        self.calls.append(("msbuild", project_file, tuple(properties), tuple(items), dict(global_properties or {})))
        await asyncio.sleep(0)
        project = self.projects.get(project_file)
        if project is None:
            return ToolchainResult(1, "", "MSB1009: Project file does not exist.")

        if "TargetFrameworks" in properties:
            if project["framework_stdout"] is not None:
                return ToolchainResult(project["exit_code"], project["framework_stdout"], "")
            payload = {
                "Properties": {
                    "TargetFramework": project["target_framework"],
                    "TargetFrameworks": project["target_frameworks"],
                }
            }
        else:
            payload = {
                "Properties": {
                    "TargetPath": project["dll_file"],
                    "MSBuildProjectDirectory": os.path.dirname(project_file),
                    "IsTestProject": "true" if project["is_test"] else "false",
                },
                "Items": {"Compile": [{"FullPath": path} for path in project["compile"]]},
            }
        return ToolchainResult(project["exit_code"], json.dumps(payload), "")

    async def list_solution(self, solution_file: str) -> ToolchainResult:
        self.calls.append(("sln", solution_file))
        await asyncio.sleep(0)
        return ToolchainResult(0, self.solutions.get(solution_file, ""), "")


class FakeRunner:
    """Answers runner commands by writing the files the real runner would write."""

    def __init__(self):
        self.commands: list[str] = []
        self.discovery: dict[str, dict[str, dict[str, Any]]] = {}
        self.respond = True
        self.discovery_output: str | bytes | None = None
        self.pid = "4242"

    def count(self, verb: str) -> int:
        return sum(1 for command in self.commands if command.split(" ", 1)[0] == verb)

    async def invoke(self, command: str) -> None:
        self.commands.append(command)
        if not self.respond:
            return
        verb, *args = command.split(" ")
        if verb == "discover":
            output_file, signal_file, *dlls = args
            merged: dict[str, Any] = {}
            for dll in dlls:
                merged.update(self.discovery.get(dll, {}))
            if isinstance(self.discovery_output, bytes):
                Path(output_file).write_bytes(self.discovery_output)
            else:
                Path(output_file).write_text(self.discovery_output or json.dumps(merged))
            Path(signal_file).write_text("1")
        elif verb == "run-tests":
            _stream, output_path, _process_output, *ids = args
            Path(output_path).write_text(json.dumps({test_id: {"outcome": "passed"} for test_id in ids}))
        elif verb == "debug-tests":
            pid_file, _attached, _stream, output_path, _process_output, *ids = args
            Path(pid_file).write_text(f"{self.pid}\n")
            Path(output_path).write_text(json.dumps({test_id: {"outcome": "passed"} for test_id in ids}))


def make_case(name: str, source: str, line: int) -> dict[str, Any]:
    return {
        "DisplayName": name,
        "FullyQualifiedName": f"Tests.UnitTest1.{name}",
        "CodeFilePath": source,
        "LineNumber": line,
    }


class Workspace:
    """A directory tree of fake projects wired into a FakeToolchain and FakeRunner."""

    def __init__(self, root: Path, toolchain: FakeToolchain, runner: FakeRunner):
        self.root = root
        self.toolchain = toolchain
        self.runner = runner

    def add_project(self, name: str, *, is_test: bool = True, tests: dict[str, int] | None = None, **kwargs):
        project_dir = self.root / name
        project_dir.mkdir(parents=True, exist_ok=True)
        project_file = project_dir / f"{name}.csproj"
        project_file.write_text("<Project Sdk=\"Microsoft.NET.Sdk\" />")
        source = project_dir / "UnitTest1.cs"
        source.write_text("// tests")
        dll = project_dir / "bin" / "Debug" / "net8.0" / f"{name}.dll"

        self.toolchain.add_project(str(project_file), str(dll), is_test=is_test, compile=(str(source),), **kwargs)
        if tests:
            self.runner.discovery[str(dll)] = {
                str(source): {f"{name}-{test}": make_case(test, str(source), line) for test, line in tests.items()}
            }
        return project_file, source, dll


@pytest.fixture
def fake_toolchain() -> FakeToolchain:
    return FakeToolchain()


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def workspace(tmp_path: Path, fake_toolchain: FakeToolchain, fake_runner: FakeRunner) -> Workspace:
    root = tmp_path / "workspace"
    root.mkdir()
    return Workspace(root, fake_toolchain, fake_runner)


@pytest.fixture
def fast_polling() -> PollingConfig:
    return PollingConfig(interval=0.001, discovery_timeout=0.2, debug_timeout=0.2, run_timeout=0.2)


@pytest.fixture
def notifications() -> list[tuple[str, str]]:
    return []


@pytest.fixture
def coordinator(
    tmp_path: Path,
    workspace: Workspace,
    fake_toolchain: FakeToolchain,
    fake_runner: FakeRunner,
    fast_polling: PollingConfig,
    notifications: list[tuple[str, str]],
) -> DiscoveryCoordinator:
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    return DiscoveryCoordinator(
        root=workspace.root,
        toolchain=fake_toolchain,
        runner=fake_runner,
        polling=fast_polling,
        notifier=UserNotifier(lambda level, message: notifications.append((level, message))),
        scratch_dir=str(scratch),
    )
