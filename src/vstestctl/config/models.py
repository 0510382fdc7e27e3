#
# src/vstestctl/config/models.py
#
"""
Attrs-based data models for vstestctl configuration structure.
"""

import logging
from pathlib import Path
from typing import Any

from attrs import define, field


# --- Validators ---
def _validate_log_level(inst: Any, attr: Any, value: str) -> None:
    """Validator for standard logging level names."""
    valid = logging._nameToLevel.keys()
    if value.upper() not in valid:
        raise ValueError(f"Invalid log_level '{value}'. Must be one of {list(valid)}.")


def _validate_positive_number(inst: Any, attr: Any, value: float) -> None:
    """Validator ensures a number is strictly positive."""
    if isinstance(value, bool) or not isinstance(value, int | float) or value <= 0:
        raise ValueError(f"Field '{attr.name}' must be a positive number, got {value!r}")


def _optional_path(value: Any) -> Path | None:
    if value is None or value == "":
        return None
    return Path(value).expanduser()


def _path_list(value: Any) -> list[Path]:
    return [Path(item).expanduser() for item in (value or [])]


@define(frozen=True, slots=True)
class GlobalConfig:
    """Global default settings for vstestctl."""
    log_level: str = field(default="INFO", validator=_validate_log_level)


@define(frozen=True, slots=True)
class ToolchainConfig:
    """Where to find dotnet, the SDK and the runner script."""
    dotnet_path: str = field(default="dotnet")
    # Overrides for the SDK lookup; None means "discover".
    sdk_path: Path | None = field(default=None, converter=_optional_path)
    vstest_console: Path | None = field(default=None, converter=_optional_path)
    runner_script: Path | None = field(default=None, converter=_optional_path)
    script_search_paths: list[Path] = field(factory=list, converter=_path_list)
    restart_runner_on_exit: bool = field(default=True)


@define(frozen=True, slots=True)
class PollingConfig:
    """Bounds for waiting on files written by the runner (seconds)."""
    interval: float = field(default=0.025, validator=_validate_positive_number)
    discovery_timeout: float = field(default=60.0, validator=_validate_positive_number)
    debug_timeout: float = field(default=30.0, validator=_validate_positive_number)
    run_timeout: float = field(default=600.0, validator=_validate_positive_number)


@define(frozen=True, slots=True)
class VstestCtlConfig:
    """Root configuration object for the vstestctl application."""
    global_config: GlobalConfig = field(factory=GlobalConfig, metadata={"toml_name": "global"})
    toolchain: ToolchainConfig = field(factory=ToolchainConfig)
    polling: PollingConfig = field(factory=PollingConfig)
    workspace_root: Path | None = field(default=None, converter=_optional_path)

# 🔼⚙️
