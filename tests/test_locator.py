"""Unit tests for electronqa.locator — choosing the newest build directory."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from electronqa.errors import NoBuildFoundError
from electronqa.locator import BuildDirectory, find_latest_build, list_builds
from electronqa.platforms import Platform


def _mkbuild(root: Path, name: str, mtime: float) -> Path:
    path = root / name
    path.mkdir(parents=True)
    os.utime(path, (mtime, mtime))
    return path


class TestFindLatestBuild:
    """find_latest_build() should return the most recently modified build."""

    def test_newest_wins(self, tmp_path: Path):
        _mkbuild(tmp_path, "app-darwin-x64", 1_000)
        newest = _mkbuild(tmp_path, "app-linux-x64", 3_000)
        _mkbuild(tmp_path, "app-win32-x64", 2_000)

        latest = find_latest_build(tmp_path)

        assert latest.path == newest.resolve()
        assert latest.platform is Platform.LINUX
        assert latest.mtime == 3_000

    def test_non_build_directories_ignored(self, tmp_path: Path):
        build = _mkbuild(tmp_path, "app-win32-x64", 1_000)
        _mkbuild(tmp_path, "make", 9_000)
        _mkbuild(tmp_path, "twin-peaks", 9_000)
        (tmp_path / "app-linux-x64.zip").write_bytes(b"PK")
        os.utime(tmp_path / "app-linux-x64.zip", (9_500, 9_500))

        assert find_latest_build(tmp_path).path == build.resolve()

    def test_underscore_separated_name(self, tmp_path: Path):
        _mkbuild(tmp_path, "app-darwin-x64", 1_000)
        build = _mkbuild(tmp_path, "myapp_linux_x64", 2_000)

        latest = find_latest_build(tmp_path)

        assert latest.path == build.resolve()
        assert latest.platform is Platform.LINUX

    def test_equal_mtimes_are_deterministic(self, tmp_path: Path):
        _mkbuild(tmp_path, "app-darwin-x64", 5_000)
        _mkbuild(tmp_path, "app-linux-x64", 5_000)

        first = find_latest_build(tmp_path)
        second = find_latest_build(tmp_path)

        assert first == second
        assert first.path.name == "app-linux-x64"

    def test_empty_root(self, tmp_path: Path):
        with pytest.raises(NoBuildFoundError) as exc_info:
            find_latest_build(tmp_path)
        assert exc_info.value.root == tmp_path.resolve()
        assert str(tmp_path.resolve()) in str(exc_info.value)

    def test_missing_root(self, tmp_path: Path):
        missing = tmp_path / "out"
        with pytest.raises(NoBuildFoundError, match="does not exist"):
            find_latest_build(missing)

    def test_root_is_a_file(self, tmp_path: Path):
        target = tmp_path / "out"
        target.write_text("not a dir", encoding="utf-8")
        with pytest.raises(NoBuildFoundError):
            find_latest_build(target)

    def test_defaults_to_out_in_cwd(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        build = _mkbuild(tmp_path / "out", "app-darwin-arm64", 1_000)
        monkeypatch.chdir(tmp_path)
        assert find_latest_build().path == build.resolve()


class TestListBuilds:
    def test_sorted_newest_first(self, tmp_path: Path):
        _mkbuild(tmp_path, "app-darwin-x64", 1_000)
        _mkbuild(tmp_path, "app-linux-x64", 3_000)
        _mkbuild(tmp_path, "app-win32-x64", 2_000)

        names = [b.path.name for b in list_builds(tmp_path)]

        assert names == ["app-linux-x64", "app-win32-x64", "app-darwin-x64"]

    def test_empty_root_returns_empty_list(self, tmp_path: Path):
        assert list_builds(tmp_path) == []

    def test_entries_are_build_directories(self, tmp_path: Path):
        _mkbuild(tmp_path, "app-mac-arm64", 1_000)
        [build] = list_builds(tmp_path)
        assert isinstance(build, BuildDirectory)
        assert build.platform is Platform.DARWIN
