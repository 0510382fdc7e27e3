#
# tests/unit/test_solution.py
#
"""
Tests for solution project enumeration.
"""

from pathlib import Path

import pytest

from vstestctl.projects import ProjectResolver, SolutionEnumerator
from vstestctl.projects.solution import find_solution_file, parse_solution_listing


@pytest.fixture
def enumerator(fake_toolchain) -> SolutionEnumerator:
    return SolutionEnumerator(fake_toolchain, ProjectResolver(fake_toolchain))


def test_parse_solution_listing_skips_header(tmp_path: Path) -> None:
    stdout = "Project(s)\n----------\nsrc/App/App.csproj\n\ntests/App.Tests/App.Tests.csproj\n"

    projects = parse_solution_listing(stdout, str(tmp_path))

    assert projects == [
        str(tmp_path / "src" / "App" / "App.csproj"),
        str(tmp_path / "tests" / "App.Tests" / "App.Tests.csproj"),
    ]


def test_find_solution_prefers_root(tmp_path: Path) -> None:
    (tmp_path / "nested").mkdir()
    (tmp_path / "nested" / "Other.sln").write_text("")
    (tmp_path / "Main.slnx").write_text("")

    assert find_solution_file(str(tmp_path)) == str(tmp_path / "Main.slnx")


class TestSolutionEnumerator:
    async def test_solution_listing_keeps_only_test_projects(self, enumerator, workspace, fake_toolchain) -> None:
        app, _, _ = workspace.add_project("App", is_test=False)
        unit, _, _ = workspace.add_project("UnitTests")
        integration, _, _ = workspace.add_project("IntegrationTests")
        solution = workspace.root / "All.sln"
        solution.write_text("")
        fake_toolchain.solutions[str(solution)] = (
            "Project(s)\n"
            "----------\n"
            "App/App.csproj\n"
            "UnitTests/UnitTests.csproj\n"
            "IntegrationTests/IntegrationTests.csproj\n"
        )

        projects = await enumerator.list_test_projects(workspace.root)

        assert projects == [str(unit), str(integration)]
        assert str(app) not in projects
        assert fake_toolchain.count("sln") == 1

    async def test_falls_back_to_scanning(self, enumerator, workspace, fake_toolchain) -> None:
        workspace.add_project("App", is_test=False)
        tests, _, _ = workspace.add_project("Tests")

        projects = await enumerator.list_test_projects(workspace.root)

        assert projects == [str(tests)]
        assert fake_toolchain.count("sln") == 0

    async def test_result_is_cached_per_root(self, enumerator, workspace, fake_toolchain) -> None:
        workspace.add_project("Tests")

        first = await enumerator.list_test_projects(workspace.root)
        calls = len(fake_toolchain.calls)
        second = await enumerator.list_test_projects(str(workspace.root) + "/.")

        assert first == second
        assert len(fake_toolchain.calls) == calls

    async def test_listed_but_missing_projects_are_skipped(self, enumerator, workspace, fake_toolchain) -> None:
        tests, _, _ = workspace.add_project("Tests")
        solution = workspace.root / "All.sln"
        solution.write_text("")
        fake_toolchain.solutions[str(solution)] = "Project(s)\n----------\nGone/Gone.csproj\nTests/Tests.csproj\n"

        projects = await enumerator.list_test_projects(workspace.root)

        assert projects == [str(tests)]
