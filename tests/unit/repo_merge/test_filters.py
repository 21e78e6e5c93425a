import pytest

from repo_merge.config import TreeMode
from repo_merge.file_manipulation import extension_allowed, is_mergeable


@pytest.mark.unit
def test_extension_allowed_without_allow_list_accepts_everything() -> None:
    assert extension_allowed("binary.bin", None)
    assert extension_allowed("Makefile", None)


@pytest.mark.unit
def test_extension_allowed_with_empty_allow_list_rejects_everything() -> None:
    assert not extension_allowed("README.md", [])


@pytest.mark.unit
def test_extension_allowed_matches_suffix_case_insensitively() -> None:
    assert extension_allowed("lib.RS", [".rs", ".ts"])
    assert not extension_allowed("lib.rs.bak", [".rs"])
    assert not extension_allowed(".gitignore", [".gitignore"])


@pytest.mark.unit
def test_is_mergeable_excluded_name_wins_over_allow_list() -> None:
    assert not is_mergeable(
        "package-lock.json",
        exclude_files=["package-lock.json"],
        include_extensions=[".json"],
    )
    assert is_mergeable("package.json", exclude_files=["package-lock.json"], include_extensions=[".json"])


@pytest.mark.unit
def test_is_mergeable_filtered_mode_without_allow_list_accepts_any_file() -> None:
    assert is_mergeable("data.bin", exclude_files=[], include_extensions=None)


@pytest.mark.unit
def test_is_mergeable_full_mode_without_allow_list_uses_text_extensions() -> None:
    assert is_mergeable("main.py", exclude_files=[], include_extensions=None, tree_mode=TreeMode.FULL)
    assert not is_mergeable("logo.png", exclude_files=[], include_extensions=None, tree_mode=TreeMode.FULL)


@pytest.mark.unit
def test_is_mergeable_full_mode_with_allow_list_ignores_text_extensions() -> None:
    assert is_mergeable("logo.png", exclude_files=[], include_extensions=[".png"], tree_mode=TreeMode.FULL)
    assert not is_mergeable("main.py", exclude_files=[], include_extensions=[".png"], tree_mode=TreeMode.FULL)
