"""Tests for the change-tracking walk."""

import os
import sys
from pathlib import Path

import pytest

from bootplan.errors import FilesystemError
from bootplan.watch import DEFAULT_FORMAT, format_watch_lines, walk_dir, watch_paths


def _make_tree(root: Path) -> None:
    (root / "boot" / "bootutil" / "src").mkdir(parents=True)
    (root / "boot" / "bootutil" / "include").mkdir(parents=True)
    (root / "boot" / "bootutil" / "src" / "loader.c").write_text("")
    (root / "boot" / "bootutil" / "src" / "caps.c").write_text("")
    (root / "boot" / "bootutil" / "include" / "bootutil.h").write_text("")
    (root / "boot" / "README.md").write_text("")
    (root / "boot" / "CMakeLists.txt").write_text("")


class TestWalkDir:
    def test_filters_by_suffix(self, tmp_path: Path) -> None:
        _make_tree(tmp_path)
        found = list(walk_dir(tmp_path / "boot"))
        assert {Path(p).name for p in found} == {"loader.c", "caps.c", "bootutil.h"}

    def test_sorted_and_stable(self, tmp_path: Path) -> None:
        _make_tree(tmp_path)
        first = list(walk_dir(tmp_path / "boot"))
        assert first == list(walk_dir(tmp_path / "boot"))
        assert [Path(p).name for p in first] == ["bootutil.h", "caps.c", "loader.c"]

    def test_custom_suffixes(self, tmp_path: Path) -> None:
        _make_tree(tmp_path)
        found = list(walk_dir(tmp_path / "boot", suffixes=(".md",)))
        assert [Path(p).name for p in found] == ["README.md"]

    def test_missing_root_is_fatal(self, tmp_path: Path) -> None:
        with pytest.raises(FilesystemError) as exc_info:
            list(walk_dir(tmp_path / "nope"))
        assert "nope" in str(exc_info.value)

    @pytest.mark.skipif(sys.platform == "win32", reason="needs symlinks")
    def test_symlink_loop_not_followed(self, tmp_path: Path) -> None:
        _make_tree(tmp_path)
        (tmp_path / "boot" / "bootutil" / "loop").symlink_to(tmp_path / "boot")
        found = list(walk_dir(tmp_path / "boot"))
        assert sorted(Path(p).name for p in found) == ["bootutil.h", "caps.c", "loader.c"]

    @pytest.mark.skipif(sys.platform != "linux", reason="needs byte file names")
    def test_non_utf8_name_is_fatal(self, tmp_path: Path) -> None:
        (tmp_path / "src").mkdir()
        try:
            with open(os.path.join(os.fsencode(tmp_path / "src"), b"bad\xff.c"), "w"):
                pass
        except OSError:
            pytest.skip("filesystem rejects non-UTF-8 names")
        with pytest.raises(FilesystemError):
            list(walk_dir(tmp_path / "src"))


class TestWatchPaths:
    def test_relative_roots_reported_relative(self, tmp_path: Path) -> None:
        _make_tree(tmp_path)
        paths = watch_paths(["boot"], base_dir=tmp_path)
        assert paths == [
            str(Path("boot/bootutil/include/bootutil.h")),
            str(Path("boot/bootutil/src/caps.c")),
            str(Path("boot/bootutil/src/loader.c")),
        ]

    def test_absolute_root(self, tmp_path: Path) -> None:
        _make_tree(tmp_path)
        paths = watch_paths([tmp_path / "boot" / "bootutil" / "src"], base_dir=Path("/elsewhere"))
        assert paths == [
            str(tmp_path / "boot" / "bootutil" / "src" / "caps.c"),
            str(tmp_path / "boot" / "bootutil" / "src" / "loader.c"),
        ]

    def test_roots_in_given_order(self, tmp_path: Path) -> None:
        _make_tree(tmp_path)
        (tmp_path / "csupport").mkdir()
        (tmp_path / "csupport" / "run.c").write_text("")
        paths = watch_paths(["csupport", "boot"], base_dir=tmp_path)
        assert paths[0] == str(Path("csupport/run.c"))

    def test_missing_root_aborts(self, tmp_path: Path) -> None:
        _make_tree(tmp_path)
        with pytest.raises(FilesystemError):
            watch_paths(["boot", "missing"], base_dir=tmp_path)

    def test_no_roots_warns(self) -> None:
        with pytest.warns(UserWarning, match="No watch roots"):
            assert watch_paths([]) == []


class TestFormatWatchLines:
    def test_default_format(self) -> None:
        assert DEFAULT_FORMAT == "cargo:rerun-if-changed={path}"
        assert format_watch_lines(["a.c"]) == ["cargo:rerun-if-changed=a.c"]

    def test_custom_format(self) -> None:
        assert format_watch_lines(["a.c", "b.h"], "watch {path}") == ["watch a.c", "watch b.h"]
