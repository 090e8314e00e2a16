"""
High-level entry point combining exact exclusions with ignore patterns.

Usage from a build step::

    from rerun_except import rerun_in_except

    print(rerun_in_except("frontend", ["node_modules", "artifacts"]), end="")
"""

from __future__ import annotations

import os
from collections.abc import Sequence

import pathspec

from rerun_except.dependency_list import StrPath, build_dependency_list
from rerun_except.ignore import compile_patterns, load_gitignore, matching_entries


def rerun_in_except(
    directory: StrPath,
    exclude: Sequence[StrPath] = (),
    exclude_patterns: Sequence[str] = (),
    respect_gitignore: bool = False,
) -> str:
    """
    Declarations for every immediate entry of `directory` that isn't excluded.

    Unlike `build_dependency_list()`, relative `exclude` paths are taken relative to
    `directory` (absolute ones are used as given). `exclude_patterns` are gitignore-style
    patterns matched against entry names, and `respect_gitignore` also applies the
    directory's own `.gitignore`.

    Raises `OSError` if `directory` cannot be listed.
    """
    base = os.fspath(directory)
    excluded: list[StrPath] = [os.path.join(base, os.fspath(p)) for p in exclude]

    specs: list[pathspec.PathSpec] = []
    pattern_spec = compile_patterns(exclude_patterns)
    if pattern_spec is not None:
        specs.append(pattern_spec)
    if respect_gitignore:
        gitignore_spec = load_gitignore(base)
        if gitignore_spec is not None:
            specs.append(gitignore_spec)
    excluded.extend(matching_entries(base, specs))

    return build_dependency_list(base, excluded)
