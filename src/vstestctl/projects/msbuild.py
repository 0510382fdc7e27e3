#
# src/vstestctl/projects/msbuild.py
#
"""
Helpers for reading `dotnet msbuild -getProperty/-getItem` JSON output.
"""
import json
import re
from typing import Any

PROJECT_FILE_RE = re.compile(r"\.[cf]sproj$")
SOLUTION_FILE_RE = re.compile(r"\.slnx?$")


class MsbuildOutputError(ValueError):
    """The toolchain's JSON answer could not be parsed."""


def is_project_file(name: str) -> bool:
    return PROJECT_FILE_RE.search(name) is not None


def is_solution_file(name: str) -> bool:
    return SOLUTION_FILE_RE.search(name) is not None


def parse_msbuild_json(stdout: str) -> dict[str, Any]:
    """Parses msbuild's structured output into a dict with Properties and Items."""
    try:
        parsed = json.loads(stdout)
    except json.JSONDecodeError as e:
        raise MsbuildOutputError(f"Malformed msbuild output: {e}") from e
    if not isinstance(parsed, dict):
        raise MsbuildOutputError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed


def select_target_framework(properties: dict[str, Any]) -> str | None:
    """
    Picks the framework to pin queries and builds to.

    `TargetFramework` wins when set. Otherwise the lexicographically greatest
    entry of `TargetFrameworks` is taken, so "net6.0;net8.0" gives "net8.0".
    This is plain string order, not version order: "net10.0;net9.0" gives "net9.0".
    """
    single = str(properties.get("TargetFramework") or "").strip()
    if single:
        return single
    frameworks = [fw.strip() for fw in str(properties.get("TargetFrameworks") or "").split(";")]
    frameworks = [fw for fw in frameworks if fw]
    if not frameworks:
        return None
    return max(frameworks)


def compile_items(output: dict[str, Any]) -> list[str]:
    """Returns the FullPath of every Compile item, skipping malformed entries."""
    items = (output.get("Items") or {}).get("Compile") or []
    return [item["FullPath"] for item in items if isinstance(item, dict) and item.get("FullPath")]

# 🔼⚙️
