from __future__ import annotations

import subprocess
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from repo_merge import repository
from repo_merge.exceptions import GitCommandError

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


@pytest.mark.unit
@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://github.com/user/repo.git", "repo"),
        ("https://github.com/user/repo", "repo"),
        ("git@github.com:user/repo", "repo"),
        ("git@github.com:user/repo.git", "repo"),
        ("/srv/git/project.git", "project"),
        ("no-slash-here", "repository"),
        ("https://github.com/user/repo/", "repository"),
    ],
)
def test_repo_name_from_url(url: str, expected: str) -> None:
    assert repository.repo_name_from_url(url) == expected


@pytest.mark.unit
def test_temp_dir_name_uses_milliseconds() -> None:
    assert repository.temp_dir_name(1_700_000_000_123) == "temp-1700000000123"
    assert repository.temp_dir_name().startswith("temp-")


@pytest.mark.unit
def test_git_clone_builds_command_with_depth(tmp_path: Path, mocker: MockerFixture) -> None:
    run = mocker.patch.object(
        repository.subprocess,
        "run",
        return_value=subprocess.CompletedProcess(args=[], returncode=0, stdout="", stderr=""),
    )
    dest = tmp_path / "clone"

    repository.git_clone("https://github.com/user/repo.git", dest, depth=1)

    cmd = run.call_args.args[0]
    assert cmd == ["git", "clone", "--depth", "1", "--", "https://github.com/user/repo.git", str(dest)]


@pytest.mark.unit
def test_git_clone_raises_on_non_zero_exit(tmp_path: Path, mocker: MockerFixture) -> None:
    mocker.patch.object(
        repository.subprocess,
        "run",
        return_value=subprocess.CompletedProcess(
            args=[],
            returncode=128,
            stdout="",
            stderr="fatal: repository not found",
        ),
    )

    with pytest.raises(GitCommandError) as exc_info:
        repository.git_clone("https://example.invalid/repo.git", tmp_path / "clone")

    assert exc_info.value.returncode == 128
    assert "repository not found" in str(exc_info.value)


@pytest.mark.unit
def test_git_clone_wraps_missing_git_binary(tmp_path: Path, mocker: MockerFixture) -> None:
    mocker.patch.object(repository.subprocess, "run", side_effect=FileNotFoundError("git"))

    with pytest.raises(GitCommandError) as exc_info:
        repository.git_clone("https://github.com/user/repo.git", tmp_path / "clone")

    assert exc_info.value.returncode == -1


def _fake_clone(url: str, dest: Path, *, depth: int | None = None) -> None:  # noqa: ARG001
    (dest / "sub").mkdir(parents=True)
    (dest / "sub" / "file.txt").write_text("x", encoding="utf-8")


@pytest.mark.unit
def test_temporary_clone_removes_directory_on_success(tmp_path: Path, mocker: MockerFixture) -> None:
    mocker.patch.object(repository, "git_clone", side_effect=_fake_clone)

    with repository.temporary_clone("https://github.com/user/repo.git", tmp_path) as clone_dir:
        assert clone_dir.parent == tmp_path
        assert clone_dir.name.startswith("temp-")
        assert (clone_dir / "sub" / "file.txt").exists()

    assert not clone_dir.exists()
    assert list(tmp_path.iterdir()) == []


@pytest.mark.unit
def test_temporary_clone_removes_directory_when_body_fails(tmp_path: Path, mocker: MockerFixture) -> None:
    mocker.patch.object(repository, "git_clone", side_effect=_fake_clone)

    with (
        pytest.raises(RuntimeError, match="boom"),
        repository.temporary_clone("https://github.com/user/repo.git", tmp_path),
    ):
        raise RuntimeError("boom")

    assert list(tmp_path.iterdir()) == []


@pytest.mark.unit
def test_temporary_clone_removes_partial_clone(tmp_path: Path, mocker: MockerFixture) -> None:
    def partial_clone(url: str, dest: Path, *, depth: int | None = None) -> None:  # noqa: ARG001
        dest.mkdir()
        (dest / "half").write_text("", encoding="utf-8")
        raise GitCommandError(command="git clone", returncode=128, message="git clone failed.")

    mocker.patch.object(repository, "git_clone", side_effect=partial_clone)

    with (
        pytest.raises(GitCommandError),
        repository.temporary_clone("https://github.com/user/repo.git", tmp_path),
    ):
        pytest.fail("body must not run when the clone fails")

    assert list(tmp_path.iterdir()) == []


@pytest.mark.unit
def test_remove_tree_tolerates_missing_directory(tmp_path: Path) -> None:
    assert repository.remove_tree(tmp_path / "never-created")


@pytest.mark.unit
def test_remove_tree_reports_failure(tmp_path: Path, mocker: MockerFixture) -> None:
    mocker.patch.object(repository.shutil, "rmtree", side_effect=PermissionError("denied"))

    assert not repository.remove_tree(tmp_path)


@pytest.mark.unit
def test_temporary_clone_logs_removal_only_when_it_succeeds(tmp_path: Path, mocker: MockerFixture) -> None:
    mocker.patch.object(repository, "git_clone", side_effect=_fake_clone)
    mocker.patch.object(repository, "remove_tree", return_value=False)
    log = mocker.patch.object(repository, "logger")

    with repository.temporary_clone("https://github.com/user/repo.git", tmp_path):
        pass

    assert not any(call.args[0].startswith("Removed temporary directory") for call in log.info.call_args_list)
