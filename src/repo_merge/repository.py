"""Access to the remote repository: naming, cloning and the temporary clone."""

from __future__ import annotations

import contextlib
import re
import shutil
import subprocess  # noqa: S404
import time
from pathlib import Path
from typing import TYPE_CHECKING

from repo_merge.config import FALLBACK_REPO_NAME, TEMP_DIR_PREFIX
from repo_merge.exceptions import GitCommandError
from repo_merge.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterator

_REPO_NAME_PATTERN = re.compile(r"/([^/]+?)(\.git)?$")


def repo_name_from_url(url: str) -> str:
    """Derive the display name of a repository from its URL.

    The name is the final path segment with any trailing `.git` removed.
    SSH forms like `git@github.com:user/repo` are handled the same way.

    Args:
        url (str): the repository URL

    Returns:
        str: the repository name, or `FALLBACK_REPO_NAME` when the URL has no path segment
    """
    match = _REPO_NAME_PATTERN.search(url)
    return match.group(1) if match else FALLBACK_REPO_NAME


def temp_dir_name(now_ms: int | None = None) -> str:
    """Name for a temporary clone directory, derived from the current time in milliseconds."""
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    return f"{TEMP_DIR_PREFIX}{now_ms}"


def git_clone(url: str, dest: Path, *, depth: int | None = None) -> None:
    """Clone `url` into `dest` with the git command line.

    Args:
        url (str): the repository to clone
        dest (Path): the directory to clone into; must not exist yet
        depth (int | None): optional history depth for a shallow clone

    Raises:
        GitCommandError: if git cannot be launched or exits with a non-zero status.
    """
    cmd = ["git", "clone"]
    if depth is not None:
        cmd += ["--depth", str(depth)]
    cmd += ["--", url, str(dest)]
    command = " ".join(cmd)
    try:
        out = subprocess.run(  # noqa: S603
            cmd,
            text=True,
            capture_output=True,
            check=False,
        )
    except OSError as e:
        raise GitCommandError(
            command=command,
            returncode=-1,
            stderr=str(e),
            message="Cannot run git.",
        ) from e
    if out.returncode != 0:
        raise GitCommandError(
            command=command,
            returncode=out.returncode,
            stdout=out.stdout,
            stderr=out.stderr,
            message="git clone failed.",
        )


def remove_tree(path: Path) -> bool:
    """Recursively delete `path`, tolerating partial or missing state.

    Returns:
        bool: False if `path` still exists because removal failed
    """
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        return True
    except OSError as e:
        logger.warning("Failed to remove temporary directory %s: %s", path, e)
        return False
    return True


@contextlib.contextmanager
def temporary_clone(url: str, work_dir: Path, *, depth: int | None = None) -> Iterator[Path]:
    """Clone `url` into a uniquely named directory under `work_dir` and yield it.

    The directory is removed when the context exits, whether the clone,
    the caller's work or neither failed.

    Args:
        url (str): the repository to clone
        work_dir (Path): the parent directory of the temporary clone
        depth (int | None): optional history depth for a shallow clone

    Yields:
        Path: the clone directory
    """
    dest = Path(work_dir) / temp_dir_name()
    try:
        logger.info("Cloning repository from %s into %s", url, dest)
        git_clone(url, dest, depth=depth)
        logger.info("Clone complete", url=url, path=str(dest))
        yield dest
    finally:
        if remove_tree(dest):
            logger.info("Removed temporary directory %s", dest)
