#
# src/vstestctl/telemetry/__init__.py
#
"""
Logging setup for vstestctl.
"""
from .logger import StructLogger, setup_logging

__all__ = ["StructLogger", "setup_logging"]

# 🔼⚙️
