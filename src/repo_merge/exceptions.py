from dataclasses import dataclass
from pathlib import Path


@dataclass(eq=False)
class RepoMergeError(Exception):
    """Base exception for errors in the repo_merge module."""

    message: str = "repo_merge failed."

    def __str__(self) -> str:
        return self.message


@dataclass(eq=False)
class GitCommandError(RepoMergeError):
    """Raised when a git command fails."""

    command: str = ""
    returncode: int = -1
    stdout: str = ""
    stderr: str = ""
    message: str = "git command failed."

    def __str__(self) -> str:
        detail = self.stderr.strip() or self.stdout.strip()
        text = f"{self.message} command={self.command!r} returncode={self.returncode}"
        return f"{text}: {detail}" if detail else text


@dataclass(eq=False)
class TraversalError(RepoMergeError):
    """Raised when a directory or file of the clone cannot be read."""

    path: Path = Path()
    message: str = "Cannot read repository entry."

    def __str__(self) -> str:
        return f"{self.message} path={self.path}"


@dataclass(eq=False)
class OutputWriteError(RepoMergeError):
    """Raised when the merged document cannot be written."""

    path: Path = Path()
    message: str = "Cannot write merged output."

    def __str__(self) -> str:
        return f"{self.message} path={self.path}"


@dataclass(eq=False)
class ConfigError(RepoMergeError):
    """Raised when an options file is unreadable or malformed."""

    file: Path = Path()
    message: str = "Invalid options file."

    def __str__(self) -> str:
        return f"{self.message} file={self.file}"
