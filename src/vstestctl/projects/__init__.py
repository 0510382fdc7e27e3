#
# src/vstestctl/projects/__init__.py
#
"""
Project and solution metadata sub-package for vstestctl.
"""
from .resolver import ProjectResolver, find_project_file
from .solution import SolutionEnumerator

__all__ = [
    "ProjectResolver",
    "SolutionEnumerator",
    "find_project_file",
]

# 🔼⚙️
