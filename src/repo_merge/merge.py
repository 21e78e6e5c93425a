"""Top-level merge operation: clone, build the tree, merge contents, write."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from repo_merge.exceptions import RepoMergeError
from repo_merge.file_manipulation import build_file_tree, collect_file_records
from repo_merge.logging import logger
from repo_merge.output_construction import build_merged_output, write_output
from repo_merge.repository import repo_name_from_url, temporary_clone

if TYPE_CHECKING:
    from pathlib import Path

    from repo_merge.settings import Settings


@dataclass(frozen=True)
class MergeResult:
    """Outcome of a merge: what was written, or the error that stopped it.

    Attributes:
        repo_name: Display name of the repository.
        output: Written document, None on failure.
        files: Number of merged files.
        tree_nodes: Nodes in the rendered tree, root included.
        error: Error that aborted the run, None on success.
    """

    repo_name: str
    output: Path | None = None
    files: int = 0
    tree_nodes: int = 0
    error: RepoMergeError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def merge_directory(
    directory: Path,
    *,
    repo_name: str,
    source: str,
    settings: Settings,
    generated_at: str | None = None,
) -> MergeResult:
    """Merge the text files under `directory` into `settings.output`.

    The tree is built once; the merged files are taken from its leaves, so
    the rendered tree and the merged content share one traversal. The
    document is only written once everything has been read.

    Args:
        directory (Path): the root of the checked-out repository
        repo_name (str): display name for the tree root and file headers
        source (str): the repository URL written in the header
        settings (Settings): exclusion and inclusion rules, output path
        generated_at (str | None): timestamp to embed; defaults to now

    Raises:
        TraversalError: if the tree or a file cannot be read.
        OutputWriteError: if the document cannot be written.

    Returns:
        MergeResult: the successful result
    """
    tree = build_file_tree(
        directory,
        settings.exclude_dirs,
        repo_name,
        settings.include_extensions,
        tree_mode=settings.tree_mode,
    )
    tree_nodes = tree.node_count()
    logger.info("Built file tree", repo=repo_name, nodes=tree_nodes)

    recs = collect_file_records(
        tree,
        directory,
        exclude_files=settings.exclude_files,
        include_extensions=settings.include_extensions,
        tree_mode=settings.tree_mode,
    )
    content = build_merged_output(source, repo_name, tree, recs, generated_at=generated_at)
    logger.info("Merged %d files", len(recs), bytes=sum(r.size for r in recs))

    write_output(settings.output, content)
    logger.info("Successfully merged files into %s", settings.output)
    return MergeResult(
        repo_name=repo_name,
        output=settings.output,
        files=len(recs),
        tree_nodes=tree_nodes,
    )


def merge_repository(settings: Settings) -> MergeResult:
    """Clone `settings.url` and merge it into `settings.output`.

    The temporary clone is removed whatever happens. Failures are logged
    and returned in the result instead of being raised, leaving the exit
    policy to the caller.

    Args:
        settings (Settings): the run options

    Returns:
        MergeResult: the outcome; `ok` is False when `error` is set
    """
    repo_name = repo_name_from_url(settings.url)
    try:
        with temporary_clone(settings.url, settings.work_dir, depth=settings.depth) as clone_dir:
            return merge_directory(
                clone_dir,
                repo_name=repo_name,
                source=settings.url,
                settings=settings,
            )
    except RepoMergeError as e:
        logger.error("Failed to merge repository files: %s", e, error_type=type(e).__name__)
        return MergeResult(repo_name=repo_name, error=e)
