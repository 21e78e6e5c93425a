from __future__ import annotations

import os
import stat
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from repo_merge.config import TEXT_EXTENSIONS, FileRecord, FileTree, NodeType, TreeMode
from repo_merge.exceptions import TraversalError

if TYPE_CHECKING:
    from collections.abc import Collection, Iterator


def relpath(path: Path, root: Path) -> str:
    """Send the relative path of path from root.

    Args:
        path (Path): the path to "relativise"
        root (Path): the root to relativise from

    Returns:
        str: the relative path from root to path, with POSIX separators.
            If path is not under root, returns the original path as a string.
    """
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)


def is_directory(path: Path) -> bool:
    """Check if a path is a directory, following symlinks.

    Args:
        path (Path): path to test.

    Raises:
        TraversalError: if the entry metadata cannot be read.

    Returns:
        bool: True if the path is a directory, False otherwise.
    """
    try:
        st = path.stat()
    except OSError as e:
        raise TraversalError(path=path, message=f"Cannot stat entry: {e}") from e
    return stat.S_ISDIR(st.st_mode)


def list_entries(directory: Path) -> list[tuple[str, bool]]:
    """List a directory, directories first, each group sorted by name.

    Names are compared case-insensitively; among names equal up to case the
    lower-case form comes first.

    Args:
        directory (Path): the directory to list

    Raises:
        TraversalError: if the directory cannot be listed or an entry cannot be stat-ed.

    Returns:
        list[tuple[str, bool]]: (name, is_directory) pairs in display order
    """
    try:
        names = os.listdir(directory)
    except OSError as e:
        raise TraversalError(path=directory, message=f"Cannot list directory: {e}") from e
    entries = [(name, is_directory(directory / name)) for name in names]
    return sorted(entries, key=lambda e: (not e[1], e[0].lower(), e[0].swapcase()))


def extension_allowed(name: str, include_extensions: Collection[str] | None) -> bool:
    """Check a file name against an optional extension allow-list.

    Args:
        name (str): the file basename
        include_extensions (Collection[str] | None): allowed suffixes such as ".md";
            None means every file is allowed

    Returns:
        bool: True if the file passes the allow-list
    """
    if include_extensions is None:
        return True
    allowed = {ext.lower() for ext in include_extensions}
    return Path(name).suffix.lower() in allowed


def is_mergeable(
    name: str,
    *,
    exclude_files: Collection[str],
    include_extensions: Collection[str] | None,
    tree_mode: TreeMode = TreeMode.FILTERED,
) -> bool:
    """Decide whether a file's content goes into the merged output.

    - Excluded basenames never qualify.
    - With an allow-list, the extension must be on it.
    - Without one, the full tree mode falls back to `TEXT_EXTENSIONS`
      while the filtered mode accepts every file.

    Args:
        name (str): the file basename
        exclude_files (Collection[str]): basenames to skip
        include_extensions (Collection[str] | None): optional extension allow-list
        tree_mode (TreeMode): the Tree Builder variant in effect

    Returns:
        bool: True if the file should be merged
    """
    if name in exclude_files:
        return False
    if include_extensions is not None:
        return extension_allowed(name, include_extensions)
    if tree_mode is TreeMode.FULL:
        return Path(name).suffix.lower() in TEXT_EXTENSIONS
    return True


def build_file_tree(
    directory: Path,
    exclude_dirs: Collection[str],
    repo_name: str,
    include_extensions: Collection[str] | None = None,
    *,
    tree_mode: TreeMode = TreeMode.FILTERED,
) -> FileTree:
    """Walk `directory` and build its `FileTree`.

    Subdirectories named in `exclude_dirs` are skipped without recursing.
    In the filtered mode, files must pass `include_extensions` and
    directories left without children are pruned. In the full mode every
    file is kept and nothing is pruned.

    Args:
        directory (Path): the directory to walk
        exclude_dirs (Collection[str]): directory basenames to skip
        repo_name (str): name given to the root node
        include_extensions (Collection[str] | None): optional extension allow-list
        tree_mode (TreeMode): the Tree Builder variant

    Raises:
        TraversalError: if any directory or entry cannot be read.

    Returns:
        FileTree: the directory node for `directory`
    """
    node = FileTree(name=repo_name, type=NodeType.DIRECTORY, path=directory)
    children: list[FileTree] = []
    for name, is_dir in list_entries(directory):
        full = directory / name
        if is_dir:
            if name in exclude_dirs:
                continue
            child = build_file_tree(full, exclude_dirs, name, include_extensions, tree_mode=tree_mode)
            if tree_mode is TreeMode.FULL or child.children:
                children.append(child)
        elif tree_mode is TreeMode.FULL or extension_allowed(name, include_extensions):
            children.append(FileTree(name=name, type=NodeType.FILE, path=full))
    node.children = children
    return node


def iter_tree_files(tree: FileTree) -> Iterator[FileTree]:
    """Yield the file nodes of `tree` in pre-order."""
    for child in tree.children or []:
        if child.is_dir:
            yield from iter_tree_files(child)
        else:
            yield child


def collect_file_records(
    tree: FileTree,
    root: Path,
    *,
    exclude_files: Collection[str],
    include_extensions: Collection[str] | None,
    tree_mode: TreeMode = TreeMode.FILTERED,
) -> list[FileRecord]:
    """Select the files of `tree` whose content should be merged.

    Args:
        tree (FileTree): the tree built by `build_file_tree`
        root (Path): the clone root, used for relative paths
        exclude_files (Collection[str]): basenames never merged
        include_extensions (Collection[str] | None): optional extension allow-list
        tree_mode (TreeMode): the Tree Builder variant the tree was built with

    Raises:
        TraversalError: if a selected file cannot be stat-ed.

    Returns:
        list[FileRecord]: the records in tree order
    """
    recs: list[FileRecord] = []
    for leaf in iter_tree_files(tree):
        if leaf.path is None:
            continue
        if not is_mergeable(
            leaf.name,
            exclude_files=exclude_files,
            include_extensions=include_extensions,
            tree_mode=tree_mode,
        ):
            continue
        try:
            size = leaf.path.stat().st_size
        except OSError as e:
            raise TraversalError(path=leaf.path, message=f"Cannot stat file: {e}") from e
        recs.append(FileRecord(path=leaf.path, rel=relpath(leaf.path, root), size=size))
    return recs


def read_file_text(path: Path) -> str:
    """Read a file as UTF-8 text, replacing undecodable bytes.

    Line endings are kept as stored on disk.

    Args:
        path (Path): the file to read

    Raises:
        TraversalError: if the file cannot be read.

    Returns:
        str: the file content
    """
    try:
        return path.read_bytes().decode("utf-8", errors="replace")
    except OSError as e:
        raise TraversalError(path=path, message=f"Cannot read file: {e}") from e


def now_iso() -> str:
    """Return the current UTC date and time in ISO 8601 format with milliseconds.

    Returns:
        str: e.g. "2024-05-01T12:00:00.123Z"
    """
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
