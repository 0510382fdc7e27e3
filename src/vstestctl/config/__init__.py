#
# config/__init__.py
#
"""
Configuration handling sub-package for vstestctl.

Exports the loading function and core configuration models.
"""

from .loader import load_config
from .models import (
    GlobalConfig,
    PollingConfig,
    ToolchainConfig,
    VstestCtlConfig,
)

__all__ = [
    "GlobalConfig",
    "PollingConfig",
    "ToolchainConfig",
    "VstestCtlConfig",
    "load_config",
]

# 🔼⚙️
