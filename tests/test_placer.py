"""Tests for SafeCopier."""

import stat
import threading
from pathlib import Path

import pytest

from fitsorter.errors import CopyError
from fitsorter.placer import PART_SUFFIX, SafeCopier

NAME = "2023/2023-06-01T10:00:00+02:00 running 1h30m0s.fit"


@pytest.fixture
def source(tmp_path: Path) -> Path:
    src = tmp_path / "inbox" / "activity.fit"
    src.parent.mkdir()
    src.write_bytes(b"\x0e\x10FIT-bytes\x00\xff")
    return src


def test_copies_bytes_and_creates_year_folder(tmp_path: Path, source: Path) -> None:
    out = tmp_path / "out"
    result = SafeCopier(out).copy_one(source, NAME)

    assert result.performed
    assert result.dst == out / "2023" / "2023-06-01T10:00:00+02:00 running 1h30m0s.fit"
    assert result.dst.read_bytes() == source.read_bytes()
    assert source.exists()


def test_directory_mode(tmp_path: Path, source: Path) -> None:
    result = SafeCopier(tmp_path / "out").copy_one(source, NAME)
    # umask can only remove bits
    assert stat.S_IMODE(result.dst.parent.stat().st_mode) & ~0o755 == 0


def test_overwrites_existing_destination(tmp_path: Path, source: Path) -> None:
    copier = SafeCopier(tmp_path / "out")
    dst = copier.destination(NAME)
    dst.parent.mkdir(parents=True)
    dst.write_bytes(b"stale content that is longer than the source file")

    copier.copy_one(source, NAME)

    assert dst.read_bytes() == source.read_bytes()


def test_repeated_copies_are_stable(tmp_path: Path, source: Path) -> None:
    copier = SafeCopier(tmp_path / "out")
    first = copier.copy_one(source, NAME).dst.read_bytes()
    second = copier.copy_one(source, NAME).dst.read_bytes()
    assert first == second == source.read_bytes()


def test_dry_run_writes_nothing(tmp_path: Path, source: Path) -> None:
    result = SafeCopier(tmp_path / "out", dry_run=True).copy_one(source, NAME)

    assert not result.performed
    assert result.reason == "dry run"
    assert not (tmp_path / "out").exists()


def test_same_location_is_left_alone(tmp_path: Path) -> None:
    out = tmp_path / "out"
    existing = out / "2023" / "2023-06-01T10:00:00+02:00 running 1h30m0s.fit"
    existing.parent.mkdir(parents=True)
    existing.write_bytes(b"keep me")

    result = SafeCopier(out).copy_one(existing, NAME)

    assert not result.performed
    assert result.reason == "same location"
    assert existing.read_bytes() == b"keep me"


def test_directory_creation_failure(tmp_path: Path, source: Path) -> None:
    out = tmp_path / "out"
    out.mkdir()
    (out / "2023").write_bytes(b"a file where the year folder should be")

    with pytest.raises(CopyError, match="failed to create"):
        SafeCopier(out).copy_one(source, NAME)


def test_missing_source(tmp_path: Path) -> None:
    with pytest.raises(CopyError, match="failed to copy"):
        SafeCopier(tmp_path / "out").copy_one(tmp_path / "gone.fit", NAME)


def test_no_partial_files_left_behind(tmp_path: Path, source: Path) -> None:
    copier = SafeCopier(tmp_path / "out")
    dst = copier.copy_one(source, NAME).dst

    assert sorted(p.name for p in dst.parent.iterdir()) == [dst.name]


def test_failed_copy_removes_partial_file(tmp_path: Path) -> None:
    out = tmp_path / "out"
    with pytest.raises(CopyError):
        SafeCopier(out).copy_one(tmp_path / "gone.fit", NAME)

    assert not list(out.rglob(f"*{PART_SUFFIX}"))


def test_concurrent_copies_to_one_name_do_not_mix(tmp_path: Path) -> None:
    big = tmp_path / "big.fit"
    big.write_bytes(b"a" * 4_000_000)
    small = tmp_path / "small.fit"
    small.write_bytes(b"b" * 31)
    copier = SafeCopier(tmp_path / "out")
    start = threading.Barrier(2)

    def copy_many(src: Path) -> None:
        start.wait()
        for _ in range(5):
            copier.copy_one(src, NAME)

    threads = [threading.Thread(target=copy_many, args=(src,)) for src in (big, small)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert copier.destination(NAME).read_bytes() in (big.read_bytes(), small.read_bytes())
    assert not list((tmp_path / "out").rglob(f"*{PART_SUFFIX}"))
