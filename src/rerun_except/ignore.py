"""Gitignore-style pattern handling using pathspec.

Patterns never change how exclusions are compared: they are expanded into the
exact entry paths they match, which callers add to the exclusion list.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path

import pathspec

from rerun_except.dependency_list import StrPath, iter_entries

log = logging.getLogger(__name__)


def _read_ignore_lines(path: Path) -> list[str]:
    lines = path.read_text(encoding="utf-8", errors="surrogateescape").splitlines()
    return [line for line in lines if line.strip() and not line.strip().startswith("#")]


def compile_patterns(patterns: Iterable[str]) -> pathspec.PathSpec | None:
    """Compile gitignore-style patterns, or return `None` if there are none."""
    lines = [p for p in patterns if p.strip()]
    if not lines:
        return None
    return pathspec.PathSpec.from_lines("gitignore", lines)


def load_gitignore(directory: StrPath) -> pathspec.PathSpec | None:
    """
    Read `.gitignore` in the given directory and return a compiled `PathSpec`,
    or `None` if the file doesn't exist or is empty.
    """
    gitignore = Path(directory) / ".gitignore"
    if not gitignore.is_file():
        return None
    lines = _read_ignore_lines(gitignore)
    if not lines:
        return None
    return pathspec.PathSpec.from_lines("gitignore", lines)


def _is_dir(entry: os.DirEntry[str]) -> bool:
    try:
        return entry.is_dir(follow_symlinks=False)
    except OSError:
        return False


def matching_entries(directory: StrPath, specs: Iterable[pathspec.PathSpec]) -> list[str]:
    """
    Full paths of the immediate entries of `directory` whose names match any spec.

    Paths are in the same form `build_dependency_list()` compares against, so the
    result can be passed straight into its exclusion list. Directories are also
    matched with a trailing `/` so patterns like `node_modules/` apply; a symlink to a
    directory counts as a file, as it does for git.
    """
    spec_list = list(specs)
    if not spec_list:
        return []

    matched: list[str] = []
    with os.scandir(directory) as scan:
        for entry in iter_entries(scan):
            candidates = [entry.name]
            if _is_dir(entry):
                candidates.append(entry.name + "/")
            if any(spec.match_file(c) for spec in spec_list for c in candidates):
                log.debug("Pattern excludes %s", entry.path)
                matched.append(entry.path)
    return matched
