from __future__ import annotations

import io
import os
import tempfile
from typing import TYPE_CHECKING

from repo_merge.config import BRANCH_LAST, BRANCH_MIDDLE, INDENT_AFTER_LAST, INDENT_AFTER_MIDDLE
from repo_merge.exceptions import OutputWriteError
from repo_merge.file_manipulation import now_iso, read_file_text

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from repo_merge.config import FileRecord, FileTree


def display_text(name: str) -> str:
    """Make a file name safe to write as UTF-8.

    Undecodable bytes in names read from disk come back from `os.fsdecode`
    as lone surrogates; they are shown as U+FFFD instead.
    """
    return os.fsencode(name).decode("utf-8", errors="replace")


def build_tree_lines(
    node: FileTree,
    prefix: str = "",
    *,
    is_last: bool = True,
    show_root: bool = True,
) -> list[str]:
    """Render a `FileTree` as box-drawing lines.

    Each node becomes `prefix + connector + name`. Children get the prefix
    extended by a blank segment when `node` is the last of its siblings, or
    by a continuation bar otherwise.

    Args:
        node (FileTree): the node to render
        prefix (str): indentation accumulated from the ancestors
        is_last (bool): whether `node` is the last of its siblings
        show_root (bool): when False, `node` itself gets no line; its children
            are indented as those of a last sibling, as if `node` were shown

    Returns:
        list[str]: one line per rendered node, in display order
    """
    lines: list[str] = []
    child_prefix = prefix + INDENT_AFTER_LAST
    if show_root:
        lines.append(prefix + (BRANCH_LAST if is_last else BRANCH_MIDDLE) + display_text(node.name))
        child_prefix = prefix + (INDENT_AFTER_LAST if is_last else INDENT_AFTER_MIDDLE)

    children = node.children or []
    for idx, child in enumerate(children):
        lines.extend(build_tree_lines(child, child_prefix, is_last=idx == len(children) - 1))
    return lines


def render_tree(tree: FileTree) -> str:
    """Render the whole tree with a `<name>/` root line.

    Args:
        tree (FileTree): the root of the tree

    Returns:
        str: the newline-terminated diagram
    """
    lines = [f"{display_text(tree.name)}/", *build_tree_lines(tree, show_root=False)]
    return "\n".join(lines) + "\n"


def build_header(source: str, tree: FileTree, *, generated_at: str | None = None) -> str:
    """Build the leading comments: source, timestamp and the tree block.

    Args:
        source (str): the repository URL
        tree (FileTree): the tree to render
        generated_at (str | None): timestamp to embed; defaults to now

    Returns:
        str: the header text
    """
    out = io.StringIO()
    out.write(f"// Source: {source}\n")
    out.write(f"// Merged on: {generated_at or now_iso()}\n\n")
    out.write("/*\n")
    out.write(render_tree(tree))
    out.write("*/\n\n")
    return out.getvalue()


def file_header(repo_name: str, rec: FileRecord) -> str:
    """Header comment naming a merged file, rooted at the repository name."""
    return f"\n// File: {display_text(repo_name)}/{display_text(rec.rel)}\n"


def build_merged_output(
    source: str,
    repo_name: str,
    tree: FileTree,
    recs: Sequence[FileRecord],
    *,
    generated_at: str | None = None,
) -> str:
    """Assemble the merged document in memory.

    The content of every record is appended, in order, after a path header.
    Nothing is escaped: a file that itself contains header syntax is
    copied as-is.

    Args:
        source (str): the repository URL
        repo_name (str): the display name used in file headers
        tree (FileTree): the tree rendered in the header
        recs (Sequence[FileRecord]): files to merge
        generated_at (str | None): timestamp to embed; defaults to now

    Raises:
        TraversalError: if any file cannot be read.

    Returns:
        str: the full document
    """
    out = io.StringIO()
    out.write(build_header(source, tree, generated_at=generated_at))
    for rec in recs:
        out.write(file_header(repo_name, rec))
        out.write(read_file_text(rec.path))
        out.write("\n")
    return out.getvalue()


def write_output(path: Path, content: str) -> None:
    """Write the merged document, replacing any existing file.

    The document goes to a temporary file next to `path` which is then
    renamed over it, so a failed write leaves any previous output intact.

    Args:
        path (Path): destination file
        content (str): the document

    Raises:
        OutputWriteError: if the file cannot be written or encoded.
    """
    tmp: str | None = None
    try:
        fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
        with open(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        os.replace(tmp, path)
    except (OSError, UnicodeError) as e:
        if tmp is not None and os.path.exists(tmp):
            os.unlink(tmp)
        raise OutputWriteError(path=path, message=f"Cannot write merged output: {e}") from e
