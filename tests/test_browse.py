"""Tests for single-level directory browsing."""

from __future__ import annotations

from pathlib import Path

import pytest

from spyglass.browse import (
    BrowseError,
    get_home_dir,
    get_parent_path,
    get_relative_path,
    initial_location,
    path_exists,
    read_directory,
)
from spyglass.config import SpyglassConfig, Tab


def test_read_directory_lists_folders_first_case_insensitive(tmp_path: Path) -> None:
    (tmp_path / "zeta").mkdir()
    (tmp_path / "Alpha").mkdir()
    (tmp_path / "beta.txt").write_text("", encoding="utf-8")
    (tmp_path / "Aardvark.md").write_text("", encoding="utf-8")
    (tmp_path / ".hidden").mkdir()
    (tmp_path / ".env").write_text("", encoding="utf-8")

    items = read_directory(tmp_path)

    assert [item.name for item in items] == ["Alpha", "zeta", "Aardvark.md", "beta.txt"]
    assert [item.is_directory for item in items] == [True, True, False, False]
    assert items[0].path == str(tmp_path / "Alpha")


def test_read_directory_empty_folder(tmp_path: Path) -> None:
    assert read_directory(tmp_path) == []


def test_read_directory_missing_path(tmp_path: Path) -> None:
    with pytest.raises(BrowseError, match="does not exist"):
        read_directory(tmp_path / "missing")


def test_read_directory_rejects_files(tmp_path: Path) -> None:
    target = tmp_path / "file.txt"
    target.write_text("", encoding="utf-8")

    with pytest.raises(BrowseError, match="not a directory"):
        read_directory(target)


def test_get_parent_path(tmp_path: Path) -> None:
    child = tmp_path / "child"

    assert get_parent_path(child) == str(tmp_path)
    assert get_parent_path("/") is None


def test_get_relative_path_inside_and_outside_base(tmp_path: Path) -> None:
    nested = tmp_path / "a" / "b.txt"

    assert get_relative_path(nested, tmp_path) == str(Path("a") / "b.txt")
    assert get_relative_path("/elsewhere/file", tmp_path) == "/elsewhere/file"


def test_path_exists(tmp_path: Path) -> None:
    assert path_exists(tmp_path) is True
    assert path_exists(tmp_path / "missing") is False


def test_get_home_dir_follows_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))

    assert get_home_dir() == str(tmp_path)


def test_initial_location_prefers_remembered_folder(tmp_path: Path) -> None:
    remembered = tmp_path / "remembered"
    remembered.mkdir()
    tab_folder = tmp_path / "tab"
    tab_folder.mkdir()
    tab = Tab(id="t1", path=str(tab_folder), name="tab", color="#fff")

    config = SpyglassConfig(
        last_location=str(remembered),
        tabs=[tab],
        active_tab_id="t1",
        root_folder=str(tmp_path),
    )

    assert initial_location(config) == str(remembered)
    assert initial_location(config.model_copy(update={"remember_location": False})) == str(
        tab_folder
    )


def test_initial_location_falls_back_to_root_then_home(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))

    stale = SpyglassConfig(last_location=str(tmp_path / "gone"), root_folder="~/work")

    assert initial_location(stale) == str(tmp_path / "work")
    assert initial_location(SpyglassConfig()) == str(tmp_path)
