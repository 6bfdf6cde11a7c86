import os
import stat
import time

import pytest

from app.services.archive_service import ArchivePathError, ArchiveStore, safe_filename


def test_safe_filename_strips_unsafe_characters():
    assert safe_filename("KING01_ORDERS_2024-01-01_160100.csv") == "KING01_ORDERS_2024-01-01_160100.csv"
    assert safe_filename("../../etc/passwd") == "....etcpasswd"
    assert safe_filename("a b/c:d^e.csv") == "abcd^e.csv"


@pytest.mark.parametrize("name", ["", "/", "..", "./"])
def test_safe_filename_rejects_empty_results(name):
    with pytest.raises(ArchivePathError):
        safe_filename(name)


def test_write_creates_private_file(tmp_path):
    store = ArchiveStore(str(tmp_path / "archive"))
    path = store.write("KING01_ORDERS_x.csv", b"a,b\r\n")
    assert path.read_bytes() == b"a,b\r\n"
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
    assert path.parent == (tmp_path / "archive").resolve()


def test_write_never_overwrites_existing_file(tmp_path):
    store = ArchiveStore(str(tmp_path))
    path = store.write("KING01_ORDERS_2024-01-01_160100.csv", b"first batch\r\n")
    with pytest.raises(ArchivePathError):
        store.write("KING01_ORDERS_2024-01-01_160100.csv", b"second\r\n")
    assert path.read_bytes() == b"first batch\r\n"


def test_write_stores_large_payload_completely(tmp_path):
    data = b"x" * (4 * 1024 * 1024 + 7)
    path = ArchiveStore(str(tmp_path)).write("big.csv", data)
    assert path.stat().st_size == len(data)


def test_write_rejects_paths_outside_root(tmp_path):
    store = ArchiveStore(str(tmp_path / "archive"))
    with pytest.raises(ArchivePathError):
        store.write("../escape.csv", b"x")
    with pytest.raises(ArchivePathError):
        store.write("sub/inner.csv", b"x")


def test_cleanup_removes_only_old_files(tmp_path):
    store = ArchiveStore(str(tmp_path))
    old = store.write("old.csv", b"x")
    new = store.write("new.csv", b"y")
    keep = tmp_path / "notes.txt"
    keep.write_text("not an export")
    forty_days_ago = time.time() - 40 * 86400
    os.utime(old, (forty_days_ago, forty_days_ago))
    os.utime(keep, (forty_days_ago, forty_days_ago))

    deleted = store.cleanup(days_to_keep=30)
    assert deleted == ["old.csv"]
    assert not old.exists()
    assert new.exists()
    assert keep.exists()


def test_cleanup_missing_directory(tmp_path):
    assert ArchiveStore(str(tmp_path / "nope")).cleanup() == []
