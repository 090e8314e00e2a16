#!/usr/bin/env python3
"""
rerun-except: Cargo rerun-if-changed lines for a directory, minus exclusions

Prints one `cargo:rerun-if-changed=<path>` line for each immediate entry of the
directory, skipping excluded paths. Relative exclusions are relative to the directory.

Common usage:
  rerun-except frontend --exclude node_modules --exclude artifacts
  rerun-except . --exclude-pattern '*.log' --respect-gitignore
  rerun-except assets -o rerun.txt

Settings can also live in `.rerun-except.toml`, `rerun-except.toml`, or
`[tool.rerun-except]` in `pyproject.toml`.
"""

from __future__ import annotations

import argparse
import importlib.metadata
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

from strif import atomic_output_file

from rerun_except.config import find_config_file, load_config, merge_cli_with_config
from rerun_except.rerun_api import rerun_in_except

log = logging.getLogger(__name__)


@dataclass
class Options:
    """Command-line options for the rerun-except tool."""

    directory: str
    output: str
    exclude: list[str]
    exclude_patterns: list[str]
    respect_gitignore: bool
    no_config: bool
    verbose: bool
    version: bool


def _parse_args(args: list[str] | None = None) -> tuple[Options, set[str]]:
    """
    Parse command-line arguments.

    Returns `(options, explicit_flags)`, where `explicit_flags` holds the option
    fields the user actually passed, so config values never override them.
    """
    module_doc = __doc__ or ""
    doc_parts = module_doc.split("\n\n")
    description = doc_parts[0]
    epilog = "\n\n".join(doc_parts[1:])

    parser = argparse.ArgumentParser(
        prog="rerun-except",
        description=description,
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help="Directory whose immediate entries are declared (default: %(default)s)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default="-",
        help="Output file (use '-' for stdout)",
    )
    parser.add_argument(
        "-e",
        "--exclude",
        action="append",
        default=None,
        metavar="PATH",
        help="Exact path to leave out, relative to the directory unless absolute. Can be repeated",
    )
    parser.add_argument(
        "--exclude-pattern",
        action="append",
        default=None,
        dest="exclude_patterns",
        metavar="PATTERN",
        help="Gitignore-style pattern for entry names to leave out (e.g., '*.log'). "
        "Can be repeated",
    )
    parser.add_argument(
        "--respect-gitignore",
        action="store_true",
        default=None,
        dest="respect_gitignore",
        help="Also leave out entries ignored by the directory's .gitignore",
    )
    parser.add_argument(
        "--no-config",
        action="store_true",
        dest="no_config",
        help="Don't look for a config file",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log skipped entries to stderr",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version information and exit",
    )
    opts = parser.parse_args(args)

    # Flags left at None were not supplied on the command line.
    explicit_flags: set[str] = {
        name
        for name in ("exclude", "exclude_patterns", "respect_gitignore")
        if getattr(opts, name) is not None
    }

    return (
        Options(
            directory=opts.directory,
            output=opts.output,
            exclude=opts.exclude or [],
            exclude_patterns=opts.exclude_patterns or [],
            respect_gitignore=bool(opts.respect_gitignore),
            no_config=opts.no_config,
            verbose=opts.verbose,
            version=opts.version,
        ),
        explicit_flags,
    )


def _write_output(text: str, output: str) -> None:
    if output == "-":
        sys.stdout.write(text)
        sys.stdout.flush()
    else:
        with atomic_output_file(Path(output), make_parents=True) as temp_path:
            Path(temp_path).write_text(text, encoding="utf-8")


def main(args: list[str] | None = None) -> int:
    """
    Main entry point for the rerun-except CLI.

    Args:
        args: Command-line arguments (uses sys.argv if None)

    Returns:
        Exit code (0 for success, 1 if the directory can't be listed, 2 for other errors)
    """
    options, explicit_flags = _parse_args(args)

    if options.version:
        try:
            version = importlib.metadata.version("rerun-except")
            print(f"v{version}")
        except importlib.metadata.PackageNotFoundError:
            print("unknown (package not installed)")
        return 0

    if options.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    try:
        if not options.no_config:
            config_path = find_config_file(Path.cwd())
            if config_path:
                log.debug("Using config file %s", config_path)
                merge_cli_with_config(options, load_config(config_path), explicit_flags)

        text = rerun_in_except(
            options.directory,
            exclude=options.exclude,
            exclude_patterns=options.exclude_patterns,
            respect_gitignore=options.respect_gitignore,
        )
        _write_output(text, options.output)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        # Malformed config files and other unexpected failures.
        print(f"Error: {e}", file=sys.stderr)
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
