"""Tests for FolderScanner."""

import os
import types
from pathlib import Path

import pytest

from fitsorter.errors import FatalRunError, ScanError
from fitsorter.scanner import FolderScanner


def touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x")
    return path


def test_scan_is_lazy_generator(tmp_path: Path) -> None:
    touch(tmp_path / "a.fit")
    assert isinstance(FolderScanner(tmp_path).scan(), types.GeneratorType)


def test_recursive_in_lexical_order(tmp_path: Path) -> None:
    touch(tmp_path / "b.fit")
    touch(tmp_path / "a.txt")
    touch(tmp_path / "sub" / "deeper" / "c.fit")
    touch(tmp_path / "sub" / "b.fit")

    found = [s.path.relative_to(tmp_path).as_posix() for s in FolderScanner(tmp_path).scan()]

    assert found == ["a.txt", "b.fit", "sub/b.fit", "sub/deeper/c.fit"]


def test_directories_are_not_emitted(tmp_path: Path) -> None:
    (tmp_path / "empty").mkdir()
    assert list(FolderScanner(tmp_path).scan()) == []


def test_source_file_fields(tmp_path: Path) -> None:
    touch(tmp_path / "ride.fit")
    (source,) = FolderScanner(tmp_path).scan()

    assert source.path == tmp_path / "ride.fit"
    assert source.is_regular is True


def test_excluded_directory_is_pruned(tmp_path: Path) -> None:
    touch(tmp_path / "in.fit")
    touch(tmp_path / "out" / "2023" / "copied.fit")

    found = [s.path.name for s in FolderScanner(tmp_path, exclude=[tmp_path / "out"]).scan()]

    assert found == ["in.fit"]


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks not supported")
def test_symlinks_are_not_regular(tmp_path: Path) -> None:
    target = touch(tmp_path / "data" / "real.fit")
    try:
        (tmp_path / "link.fit").symlink_to(target)
        (tmp_path / "linkdir").symlink_to(target.parent, target_is_directory=True)
    except OSError:
        pytest.skip("cannot create symlinks here")

    by_name = {s.path.name: s for s in FolderScanner(tmp_path).scan()}

    assert by_name["real.fit"].is_regular
    assert not by_name["link.fit"].is_regular
    assert not by_name["linkdir"].is_regular
    assert len(by_name) == 3


def test_missing_root_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(ScanError):
        list(FolderScanner(tmp_path / "nope").scan())


def test_scan_error_is_a_fatal_run_error(tmp_path: Path) -> None:
    assert issubclass(ScanError, FatalRunError)
