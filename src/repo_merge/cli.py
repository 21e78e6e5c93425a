"""
repo_merge: merge a remote git repository into a single text document.

Overview
--------
The repository is cloned into a temporary `temp-<ms>` directory, walked once,
and written out as:

1) a `// Source:` and a `// Merged on:` comment,
2) a `/* ... */` block holding the directory tree,
3) every qualifying file, each after a `// File: <repo>/<path>` header.

The temporary clone is always removed, whether the run succeeds or not.

Options come, in increasing precedence, from `REPO_MERGE_*` variables (in the
environment or a `.env` file), a YAML file passed with `--config`, and the
command line.

Usage
-----
Run `repo-merge --help` for full options. Common examples:
    - Everything, default exclusions:
        repo-merge https://github.com/user/repo.git

    - Markdown only, into a chosen file:
        repo-merge git@github.com:user/repo.git --include-ext .md -o docs.txt

    - Full tree, text files only, shallow clone:
        repo-merge https://github.com/user/repo --tree-mode full --depth 1
"""

from __future__ import annotations

import argparse
from typing import TYPE_CHECKING

from pydantic import ValidationError

from repo_merge import __version__
from repo_merge.config import TreeMode
from repo_merge.exceptions import ConfigError
from repo_merge.logging import logger, setup_logging
from repo_merge.merge import merge_repository
from repo_merge.settings import Settings

if TYPE_CHECKING:
    from collections.abc import Sequence


def split_values(values: Sequence[str] | None) -> list[str] | None:
    """Flatten repeated and comma separated option values.

    Args:
        values (Sequence[str] | None): raw values collected by an `append` option

    Returns:
        list[str] | None: the individual values, or None if the option was not given
    """
    if values is None:
        return None
    return [part.strip() for value in values for part in value.split(",") if part.strip()]


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="repo-merge",
        description="Clone a git repository and merge its files into one text document.",
    )
    p.add_argument("url", help="Repository URL (https or ssh).")
    p.add_argument("-o", "--output", type=str, default=None, help="Output file.")
    p.add_argument(
        "--exclude-dir",
        dest="exclude_dirs",
        action="append",
        default=None,
        help="Directory name to skip (repeatable, comma separated).",
    )
    p.add_argument(
        "--exclude-file",
        dest="exclude_files",
        action="append",
        default=None,
        help="File name never merged (repeatable, comma separated).",
    )
    p.add_argument(
        "--include-ext",
        dest="include_extensions",
        action="append",
        default=None,
        help="Only include these extensions, e.g. .md (repeatable, comma separated).",
    )
    p.add_argument(
        "--tree-mode",
        choices=[m.value for m in TreeMode],
        default=None,
        help="filtered: prune by extension (default). full: list every file.",
    )
    p.add_argument("--depth", type=int, default=None, help="Shallow clone depth.")
    p.add_argument("--work-dir", type=str, default=None, help="Where to create the temporary clone.")
    p.add_argument("--config", type=str, default=None, help="YAML options file.")
    p.add_argument("--log-file", type=str, default=None, help="Log file path.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    """Parse command-line arguments into `Settings`.

    Args:
        argv (Sequence[str] | None): arguments, defaults to `sys.argv[1:]`

    Raises:
        ConfigError: if the `--config` file is unreadable or malformed.

    Returns:
        Settings: options merged from environment, options file and flags
    """
    args = build_parser().parse_args(argv)
    values = vars(args)
    config_file = values.pop("config")
    for key in ("exclude_dirs", "exclude_files", "include_extensions"):
        values[key] = split_values(values[key])
    return Settings.from_sources(values, config_file=config_file)


def main(argv: Sequence[str] | None = None) -> int:
    try:
        settings = parse_args(argv)
    except (ConfigError, ValidationError) as e:
        logger.error("Invalid configuration: %s", e)
        return 2
    if settings.log_file:
        setup_logging(settings.log_file)

    result = merge_repository(settings)
    if not result.ok:
        return 1

    print(f"Wrote {result.output} files={result.files}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
