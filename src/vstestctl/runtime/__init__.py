#
# src/vstestctl/runtime/__init__.py
#
"""
Runtime sub-package: the discovery and execution coordinator.
"""
from .coordinator import DiscoveryCoordinator, parse_discovery_output
from .factory import create_coordinator
from .polling import FilePoller

__all__ = [
    "DiscoveryCoordinator",
    "FilePoller",
    "create_coordinator",
    "parse_discovery_output",
]

# 🔼⚙️
