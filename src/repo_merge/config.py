from __future__ import annotations

from enum import StrEnum, auto
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, model_validator

_ = Path()


class NodeType(StrEnum):
    """Kind of entry held by a `FileTree` node."""

    FILE = auto()
    DIRECTORY = auto()


class TreeMode(StrEnum):
    """Which Tree Builder variant is in effect.

    `FILTERED` applies the extension allow-list while building the tree and
    prunes directories left empty by it. `FULL` lists every file under a
    non-excluded directory and restricts merging to `TEXT_EXTENSIONS` when
    no allow-list is configured.
    """

    FILTERED = auto()
    FULL = auto()


DEFAULT_EXCLUDE_DIRS: list[str] = ["node_modules", ".git", "dist", "build"]

DEFAULT_EXCLUDE_FILES: list[str] = [".env", ".gitignore", "package-lock.json"]

DEFAULT_OUTPUT = "merged-output.txt"

FALLBACK_REPO_NAME = "repository"

TEMP_DIR_PREFIX = "temp-"

TEXT_EXTENSIONS: frozenset[str] = frozenset({
    ".bash",
    ".c",
    ".cc",
    ".cfg",
    ".conf",
    ".cpp",
    ".cs",
    ".css",
    ".cxx",
    ".go",
    ".h",
    ".hpp",
    ".htm",
    ".html",
    ".ini",
    ".java",
    ".js",
    ".json",
    ".jsx",
    ".kt",
    ".markdown",
    ".md",
    ".mjs",
    ".php",
    ".py",
    ".rb",
    ".rs",
    ".rst",
    ".scss",
    ".sh",
    ".sql",
    ".swift",
    ".toml",
    ".ts",
    ".tsx",
    ".txt",
    ".vue",
    ".xml",
    ".yaml",
    ".yml",
    ".zsh",
})

BRANCH_LAST = "└─ "
BRANCH_MIDDLE = "├─ "
INDENT_AFTER_LAST = "   "
INDENT_AFTER_MIDDLE = "│  "


class FileTree(BaseModel):
    """One entry of the hierarchical view of a cloned repository.

    Attributes:
        name: Basename of the entry (the display name for the root).
        type: Whether the node is a file or a directory.
        children: Ordered child nodes; always a list for directories, None for files.
        path: On-disk location of the entry. Not part of the rendered tree.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = Field(..., description="Entry basename")
    type: NodeType = Field(..., description="file or directory")
    children: list[FileTree] | None = Field(default=None, description="Child nodes (directories only)")
    path: Path | None = Field(default=None, description="On-disk location", exclude=True)

    @model_validator(mode="after")
    def _check_children(self) -> FileTree:
        if self.type is NodeType.FILE and self.children is not None:
            msg = f"file node {self.name!r} cannot have children"
            raise ValueError(msg)
        if self.type is NodeType.DIRECTORY and self.children is None:
            self.children = []
        return self

    @property
    def is_dir(self) -> bool:
        return self.type is NodeType.DIRECTORY

    def node_count(self) -> int:
        """Count this node and all of its descendants."""
        return 1 + sum(child.node_count() for child in self.children or [])


FileTree.model_rebuild()


class FileRecord(BaseModel):
    """Lightweight metadata for a file included in the merged output.

    Attributes:
        path: Absolute path to the file on disk.
        rel: Path relative to the clone root, with POSIX separators.
        size: File size in bytes.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    path: Path = Field(..., description="Absolute file path")
    rel: str = Field(..., description="File path relative to repository root")
    size: int = Field(default=0, ge=0, description="File size in bytes")
