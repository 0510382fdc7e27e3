# src/vstestctl/state.py
#
"""
Data models for project metadata and the discovery caches.
"""

from collections.abc import Iterable, Mapping
from typing import Any

import structlog
from attrs import define, field, mutable

log: structlog.stdlib.BoundLogger = structlog.get_logger("state")


@define(frozen=True, slots=True)
class ProjectInfo:
    """Build properties of a single .csproj/.fsproj."""

    project_file: str
    dll_file: str = field(default="")  # MSBuild TargetPath; empty when unknown.
    project_dir: str = field(default="")
    target_framework: str | None = field(default=None)
    is_test_project: bool = field(default=False)


@define(frozen=True, slots=True)
class TestCase:
    """A single test case as reported by the runner's discovery output."""

    __test__ = False  # not a pytest class

    display_name: str
    fully_qualified_name: str
    code_file_path: str | None = field(default=None)
    line_number: int | None = field(default=None)

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "TestCase":
        """Raises ValueError when a field has the wrong type."""
        line = data.get("LineNumber")
        try:
            line_number = int(line) if line is not None else None
        except TypeError as e:
            raise ValueError(f"Invalid LineNumber {line!r}") from e
        code_file_path = data.get("CodeFilePath") or None
        if code_file_path is not None and not isinstance(code_file_path, str):
            raise ValueError(f"Invalid CodeFilePath {code_file_path!r}")
        return cls(
            display_name=str(data.get("DisplayName") or ""),
            fully_qualified_name=str(data.get("FullyQualifiedName") or ""),
            code_file_path=code_file_path,
            line_number=line_number,
        )


TestCaseMap = dict[str, TestCase]


@mutable(slots=True)
class DiscoveryState:
    """
    Discovered test cases and the artifact timestamps they were captured at.

    A file's entry is fresh only while the timestamp recorded for its project
    is at least the artifact's current modification time.
    """

    # source file -> {test id -> TestCase}
    test_cases: dict[str, TestCaseMap] = field(factory=dict)
    # project file -> artifact mtime (seconds) at last discovery
    last_discovery: dict[str, float] = field(factory=dict)

    @property
    def is_cold(self) -> bool:
        return not self.test_cases

    def is_fresh(self, project_file: str, artifact_mtime: float | None) -> bool:
        recorded = self.last_discovery.get(project_file)
        if recorded is None or artifact_mtime is None:
            return False
        return artifact_mtime <= recorded

    def record_discovery(self, project_file: str, artifact_mtime: float) -> None:
        self.last_discovery[project_file] = artifact_mtime
        log.debug("Recorded discovery timestamp", project=project_file, mtime=artifact_mtime)

    def forget_discovery(self, project_files: Iterable[str]) -> None:
        for project_file in project_files:
            self.last_discovery.pop(project_file, None)

    def merge(self, discovered: Mapping[str, TestCaseMap]) -> None:
        """Replaces the entry of every file present in `discovered`, in one step."""
        self.test_cases.update({path: dict(cases) for path, cases in discovered.items()})
        log.debug("Merged discovery results", files=len(discovered))

    def tests_for(self, source_path: str) -> TestCaseMap:
        return dict(self.test_cases.get(source_path, {}))

    def clear(self) -> None:
        self.test_cases.clear()
        self.last_discovery.clear()

# 🔼⚙️
