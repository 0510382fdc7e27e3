#
# src/vstestctl/protocols.py
#
"""
Defines protocols and result structures shared across vstestctl components.
"""
from collections.abc import Mapping, Sequence
from enum import Enum, auto
from pathlib import Path
from typing import Protocol, runtime_checkable

from attrs import define, field

from vstestctl.state import TestCase


@define(frozen=True, slots=True)
class ToolchainResult:
    """
    Structured result from one dotnet invocation.
    """
    exit_code: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.exit_code == 0


class DiscoveryStatus(Enum):
    """Why a discovery call returned what it returned."""

    FOUND = auto()  # Discovery answered; tests may still be empty.
    NOT_FOUND = auto()  # No project or no build artifact for the file.
    FAILED = auto()  # Runner could not be started or produced unreadable output.
    TIMED_OUT = auto()  # Runner did not answer within the polling bound.


@define(frozen=True, slots=True)
class DiscoveryResult:
    """
    Outcome of `DiscoveryCoordinator.discover`.

    `tests` is always a mapping, empty for every status but FOUND, so callers
    that only want the test cases can ignore `status`.
    """
    status: DiscoveryStatus
    tests: Mapping[str, TestCase] = field(factory=dict)
    reason: str | None = field(default=None)
    from_cache: bool = field(default=False)

    @property
    def found(self) -> bool:
        return self.status is DiscoveryStatus.FOUND

    @classmethod
    def not_found(cls, reason: str) -> "DiscoveryResult":
        return cls(status=DiscoveryStatus.NOT_FOUND, reason=reason)

    @classmethod
    def failed(cls, reason: str) -> "DiscoveryResult":
        return cls(status=DiscoveryStatus.FAILED, reason=reason)

    @classmethod
    def timed_out(cls, reason: str) -> "DiscoveryResult":
        return cls(status=DiscoveryStatus.TIMED_OUT, reason=reason)


@runtime_checkable
class Toolchain(Protocol):
    """
    Protocol for the build toolchain as seen by the resolver and coordinator.
    """
    async def build(self, target: str | None = None, cwd: Path | None = None) -> ToolchainResult:
        ...

    async def msbuild_query(
        self,
        project_file: str,
        properties: Sequence[str] = (),
        items: Sequence[str] = (),
        global_properties: Mapping[str, str] | None = None,
    ) -> ToolchainResult:
        ...

    async def list_solution(self, solution_file: str) -> ToolchainResult:
        ...


@runtime_checkable
class CommandChannel(Protocol):
    """
    Protocol for anything that accepts runner command lines.
    """
    async def invoke(self, command: str) -> None:
        """
        Queues one command line for the runner.

        Returns once the line is written, not once the runner has answered.
        """
        ...

# 🔼⚙️
