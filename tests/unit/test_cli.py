#
# tests/unit/test_cli.py
#
"""
Tests for the vstestctl command line.
"""

from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from vstestctl import __version__
from vstestctl.cli.main import cli
from vstestctl.runtime import DiscoveryCoordinator


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def fake_coordinators(tmp_path, workspace, fake_toolchain, fake_runner, fast_polling):
    """Routes every CLI command to a coordinator built on the fakes."""
    created: list[DiscoveryCoordinator] = []

    def factory(config, root=None, notifier=None):
        scratch = tmp_path / f"scratch-{len(created)}"
        scratch.mkdir()
        coordinator = DiscoveryCoordinator(
            root=root or workspace.root,
            toolchain=fake_toolchain,
            runner=fake_runner,
            polling=fast_polling,
            notifier=notifier,
            scratch_dir=str(scratch),
        )
        created.append(coordinator)
        return coordinator

    with patch("vstestctl.cli.utils.create_coordinator", factory):
        yield created


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    # Keep a developer's own vstestctl.toml out of the tests.
    monkeypatch.chdir(tmp_path)
    for name in ("VSTESTCTL_CONF", "VSTESTCTL_LOG_LEVEL", "VSTESTCTL_DOTNET", "VSTESTCTL_RUNNER_SCRIPT"):
        monkeypatch.delenv(name, raising=False)


class TestMainCLI:
    def test_cli_help(self, cli_runner) -> None:
        result = cli_runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "vstestctl" in result.output
        for command in ("discover", "run", "debug", "projects", "info", "config"):
            assert command in result.output

    def test_cli_version(self, cli_runner) -> None:
        result = cli_runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_invalid_log_level(self, cli_runner) -> None:
        result = cli_runner.invoke(cli, ["--log-level", "INVALID", "config", "show"])

        assert result.exit_code != 0


class TestConfigCommands:
    def test_show_config(self, cli_runner, tmp_path: Path) -> None:
        config_file = tmp_path / "custom.toml"
        config_file.write_text('[toolchain]\ndotnet_path = "/opt/dotnet/dotnet"\n')

        result = cli_runner.invoke(cli, ["config", "show", "-c", str(config_file)])

        assert result.exit_code == 0
        assert "ToolchainConfig" in result.output
        assert "/opt/dotnet/dotnet" in result.output

    def test_invalid_config_exits_with_error(self, cli_runner, tmp_path: Path) -> None:
        config_file = tmp_path / "broken.toml"
        config_file.write_text("[polling]\ninterval = 0\n")

        result = cli_runner.invoke(cli, ["config", "show", "-c", str(config_file)])

        assert result.exit_code == 1
        assert "Configuration problem" in result.output


class TestProjectCommands:
    def test_info(self, cli_runner, workspace, fake_coordinators) -> None:
        project_file, source, dll = workspace.add_project("Tests")

        result = cli_runner.invoke(cli, ["info", str(source)])

        assert result.exit_code == 0
        assert str(project_file) in result.output
        assert str(dll) in result.output
        assert "test project:     yes" in result.output

    def test_info_without_project(self, cli_runner, tmp_path: Path, fake_coordinators) -> None:
        orphan = tmp_path / "Orphan.cs"
        orphan.write_text("")

        result = cli_runner.invoke(cli, ["info", str(orphan)])

        assert result.exit_code == 1
        assert "No project file found" in result.output

    def test_projects(self, cli_runner, workspace, fake_coordinators) -> None:
        tests, _, _ = workspace.add_project("Tests")
        app, _, _ = workspace.add_project("App", is_test=False)

        result = cli_runner.invoke(cli, ["projects", "--root", str(workspace.root)])

        assert result.exit_code == 0
        assert str(tests) in result.output
        assert str(app) not in result.output


class TestTestCommands:
    def test_discover(self, cli_runner, workspace, fake_runner, fake_coordinators) -> None:
        _, source, _ = workspace.add_project("Tests", tests={"Adds": 10, "Subtracts": 20})

        result = cli_runner.invoke(cli, ["discover", str(source), "--root", str(workspace.root)])

        assert result.exit_code == 0
        assert "Tests-Adds  Tests.UnitTest1.Adds  (line 10)" in result.output
        assert "Tests-Subtracts" in result.output
        assert fake_runner.count("discover") == 1

    def test_discover_json(self, cli_runner, workspace, fake_coordinators) -> None:
        _, source, _ = workspace.add_project("Tests", tests={"Adds": 10})

        result = cli_runner.invoke(cli, ["discover", str(source), "--json"])

        assert result.exit_code == 0
        assert '"FullyQualifiedName": "Tests.UnitTest1.Adds"' in result.output

    def test_discover_timeout_exits_nonzero(self, cli_runner, workspace, fake_runner, fake_coordinators) -> None:
        _, source, _ = workspace.add_project("Tests", tests={"Adds": 10})
        fake_runner.respond = False

        result = cli_runner.invoke(cli, ["discover", str(source)])

        assert result.exit_code == 1
        assert "Discovery timed out" in result.output

    def test_run(self, cli_runner, fake_runner, fake_coordinators) -> None:
        result = cli_runner.invoke(cli, ["run", "id-1", "id-2"])

        assert result.exit_code == 0
        assert '"id-1": {' in result.output
        assert '"outcome": "passed"' in result.output
        assert fake_runner.count("run-tests") == 1

    def test_run_requires_ids(self, cli_runner, fake_coordinators) -> None:
        result = cli_runner.invoke(cli, ["run"])

        assert result.exit_code != 0

    def test_debug_prints_pid_then_results(self, cli_runner, tmp_path: Path, fake_runner, fake_coordinators) -> None:
        result = cli_runner.invoke(cli, ["debug", "id-1", "--attached-path", str(tmp_path / "attached")])

        assert result.exit_code == 0
        assert result.output.index("4242") < result.output.index('"outcome": "passed"')
        assert fake_runner.commands[0].startswith("debug-tests ")

    def test_debug_without_pid_exits_nonzero(self, cli_runner, tmp_path: Path, fake_runner, fake_coordinators) -> None:
        fake_runner.respond = False

        result = cli_runner.invoke(cli, ["debug", "id-1", "--attached-path", str(tmp_path / "attached")])

        assert result.exit_code == 1
        assert "did not report a process id" in result.output
