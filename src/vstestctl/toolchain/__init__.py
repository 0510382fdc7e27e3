#
# src/vstestctl/toolchain/__init__.py
#
"""
Build toolchain sub-package for vstestctl.
"""
from .dotnet import DotnetInfo, DotnetToolchain, parse_dotnet_info

__all__ = [
    "DotnetInfo",
    "DotnetToolchain",
    "parse_dotnet_info",
]

# 🔼⚙️
