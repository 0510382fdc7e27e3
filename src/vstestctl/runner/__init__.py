#
# src/vstestctl/runner/__init__.py
#
"""
Runner process sub-package: launching the runner and talking to it.
"""
from .commands import debug_tests_command, discover_command, run_tests_command
from .locator import RunnerLaunchSpec, RunnerLocator
from .process import RunnerHandle, RunnerProcessManager

__all__ = [
    "RunnerHandle",
    "RunnerLaunchSpec",
    "RunnerLocator",
    "RunnerProcessManager",
    "debug_tests_command",
    "discover_command",
    "run_tests_command",
]

# 🔼⚙️
