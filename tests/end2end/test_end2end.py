from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

from repo_merge import cli


pytestmark = [
    pytest.mark.end2end,
    pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed"),
]


def git(*args: str, cwd: Path) -> None:
    subprocess.run(
        [
            "git",
            "-c",
            "user.name=Test",
            "-c",
            "user.email=test@example.com",
            "-c",
            "commit.gpgsign=false",
            *args,
        ],
        cwd=str(cwd),
        check=True,
        capture_output=True,
    )


@pytest.fixture
def origin(sample_repo: Path) -> Path:
    git("init", "-q", cwd=sample_repo)
    git("add", "--all", cwd=sample_repo)
    git("commit", "-q", "-m", "initial", cwd=sample_repo)
    return sample_repo


def test_end_to_end_merge_from_local_git_repository(
    origin: Path,
    tmp_path: Path,
    sample_files: dict[str, str],
) -> None:
    work_dir = tmp_path / "work"
    work_dir.mkdir()
    output = tmp_path / "merged.txt"

    exit_code = cli.main([str(origin), "--output", str(output), "--work-dir", str(work_dir), "--depth", "1"])

    assert exit_code == 0
    document = output.read_text(encoding="utf-8")
    tree_block = document.split("*/", 1)[0]
    assert "─ .git" not in tree_block
    assert "─ node_modules" not in tree_block
    for rel, content in sample_files.items():
        if rel.startswith("node_modules/") or rel == ".env":
            assert f"// File: sample/{rel}\n" not in document
        else:
            assert f"// File: sample/{rel}\n{content}\n" in document
    assert list(work_dir.iterdir()) == []


def test_end_to_end_missing_repository_fails_cleanly(tmp_path: Path) -> None:
    work_dir = tmp_path / "work"
    work_dir.mkdir()
    output = tmp_path / "merged.txt"

    exit_code = cli.main([str(tmp_path / "does-not-exist"), "-o", str(output), "--work-dir", str(work_dir)])

    assert exit_code == 1
    assert not output.exists()
    assert list(work_dir.iterdir()) == []
