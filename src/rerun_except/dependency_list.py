"""
Build `cargo:rerun-if-changed` declarations for the immediate entries of a directory.

The result is plain text meant to be printed verbatim by a build script, so the
build orchestrator reruns the step whenever one of the listed paths changes.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator, Sequence
from pathlib import PurePath

log = logging.getLogger(__name__)

RERUN_PREFIX = "cargo:rerun-if-changed="

StrPath = str | os.PathLike[str]


def format_rerun_line(path_text: str) -> str:
    """A single declaration line, including its trailing line-feed."""
    return f"{RERUN_PREFIX}{path_text}\n"


def path_text(path: StrPath) -> str | None:
    """
    Render `path` as text, or return `None` if it can't be represented losslessly.

    Undecodable filesystem bytes surface in `str` paths as lone surrogates
    (PEP 383), which have no valid UTF-8 encoding.
    """
    text = os.fspath(path)
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return None
    return text


def _has_leading_curdir(text: str) -> bool:
    if text == os.curdir:
        return True
    seps = [os.sep] + ([os.altsep] if os.altsep else [])
    return any(text.startswith(os.curdir + sep) for sep in seps)


def exclusion_key(path: StrPath) -> tuple[PurePath, bool]:
    """
    Comparison key for exact exclusion matching.

    `PurePath` collapses repeated separators, interior `.` and a trailing separator,
    but it also drops a leading `.`; that one is kept, so `./src` and `src` differ.
    """
    text = os.fspath(path)
    return PurePath(text), _has_leading_curdir(text)


def iter_entries(scan: Iterator[os.DirEntry[str]]) -> Iterator[os.DirEntry[str]]:
    """Yield entries from an open scandir iterator, stopping quietly on a per-entry error."""
    while True:
        try:
            entry = next(scan)
        except StopIteration:
            return
        except OSError as e:
            # The directory stream can't be resumed reliably after a read error.
            log.debug("Stopped listing after entry error: %s", e)
            return
        yield entry


def build_dependency_list(directory: StrPath, excluded: Sequence[StrPath]) -> str:
    """
    Return one `cargo:rerun-if-changed=<path>` line per immediate entry of `directory`,
    skipping entries whose full path exactly equals one of `excluded`.

    Entry paths are `directory` joined with the entry name, as `os.scandir()` reports
    them, so exclusions must be given in the same form (both relative to the same base,
    or both absolute). Comparison uses `PurePath` equality with a leading `./` kept
    significant: no symlink resolution, no case-folding, no prefix or glob matching.

    Lines follow the directory listing order, which is not sorted. Entries that fail to
    list or whose path isn't valid text are omitted silently.

    Raises `OSError` if `directory` itself cannot be listed.
    """
    excluded_keys = {exclusion_key(p) for p in excluded}
    lines: list[str] = []

    with os.scandir(directory) as scan:
        for entry in iter_entries(scan):
            if exclusion_key(entry.path) in excluded_keys:
                continue
            text = path_text(entry.path)
            if text is None:
                log.debug("Skipping entry with non-text path: %r", entry.path)
                continue
            lines.append(format_rerun_line(text))

    return "".join(lines)
