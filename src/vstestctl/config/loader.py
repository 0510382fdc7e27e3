#
# src/vstestctl/config/loader.py
#
"""
Loads vstestctl configuration from a TOML file and environment overrides.

Precedence: environment variables > config file > defaults.
"""

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import structlog

from vstestctl.config.models import GlobalConfig, PollingConfig, ToolchainConfig, VstestCtlConfig
from vstestctl.exceptions import ConfigurationError

log = structlog.get_logger("config.loader")

DEFAULT_CONFIG_NAME = "vstestctl.toml"

# env var -> (section, key)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "VSTESTCTL_DOTNET": ("toolchain", "dotnet_path"),
    "VSTESTCTL_SDK_PATH": ("toolchain", "sdk_path"),
    "VSTESTCTL_VSTEST_CONSOLE": ("toolchain", "vstest_console"),
    "VSTESTCTL_RUNNER_SCRIPT": ("toolchain", "runner_script"),
    "VSTESTCTL_LOG_LEVEL": ("global", "log_level"),
}

_SECTIONS: dict[str, type] = {
    "global": GlobalConfig,
    "toolchain": ToolchainConfig,
    "polling": PollingConfig,
}


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML in '{path}': {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Could not read config file '{path}': {e}") from e


def _apply_env_overrides(data: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    for env_var, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(env_var)
        if value:
            log.debug("Applying environment override", env_var=env_var, section=section, key=key)
            data.setdefault(section, {})[key] = value
    return data


def _build_section(name: str, raw: Any) -> Any:
    model = _SECTIONS[name]
    if raw is None:
        return model()
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Section [{name}] must be a table, got {type(raw).__name__}")
    try:
        return model(**raw)
    except TypeError as e:
        raise ConfigurationError(f"Unknown or missing key in [{name}]: {e}") from e
    except ValueError as e:
        raise ConfigurationError(f"Invalid value in [{name}]: {e}") from e


def load_config(config_path: Path | None = None, environ: Mapping[str, str] | None = None) -> VstestCtlConfig:
    """
    Loads configuration from `config_path`.

    A missing file is only an error when the path was given explicitly; with no
    path, `vstestctl.toml` in the working directory is used if present.
    """
    environ = os.environ if environ is None else environ
    data: dict[str, Any] = {}

    if config_path is not None:
        if not config_path.is_file():
            raise ConfigurationError(f"Config file not found: '{config_path}'")
        data = _read_toml(config_path)
        log.debug("Loaded config file", path=str(config_path))
    elif (default_path := Path.cwd() / DEFAULT_CONFIG_NAME).is_file():
        data = _read_toml(default_path)
        log.debug("Loaded default config file", path=str(default_path))

    unknown = set(data) - set(_SECTIONS) - {"workspace_root"}
    if unknown:
        raise ConfigurationError(f"Unknown configuration section(s): {sorted(unknown)}")

    data = _apply_env_overrides(data, environ)

    config = VstestCtlConfig(
        global_config=_build_section("global", data.get("global")),
        toolchain=_build_section("toolchain", data.get("toolchain")),
        polling=_build_section("polling", data.get("polling")),
        workspace_root=data.get("workspace_root"),
    )
    log.debug("Configuration ready", workspace_root=str(config.workspace_root))
    return config

# 🔼⚙️
