#
# src/vstestctl/__init__.py
#
"""
vstestctl: discovery and execution orchestration for .NET test projects.
"""
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("vstestctl")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

# 🔼⚙️
