"""
Emit `cargo:rerun-if-changed` lines for a directory's entries, minus exclusions.

Usage::

    from rerun_except import build_dependency_list

    print(build_dependency_list("frontend", ["frontend/node_modules"]), end="")
"""

from rerun_except.dependency_list import (
    RERUN_PREFIX,
    build_dependency_list,
    format_rerun_line,
    path_text,
)
from rerun_except.rerun_api import rerun_in_except

__all__ = [
    "RERUN_PREFIX",
    "build_dependency_list",
    "format_rerun_line",
    "path_text",
    "rerun_in_except",
]
