"""Tests for SnapshotManager."""

import errno
import sqlite3
import threading
from pathlib import Path
from unittest.mock import patch

import pytest

from src.recent_history.exceptions import SnapshotError, SnapshotErrorKind
from src.recent_history.snapshot import SnapshotManager, release, snapshot


class TestSnapshotManager:
    """SnapshotManagerのテスト"""

    @pytest.fixture
    def manager(self, snapshot_dir):
        return SnapshotManager(temp_dir=snapshot_dir)

    def test_create_copies_bytes(self, manager, history_db, snapshot_dir):
        """バイト単位で一時ディレクトリにコピーされる"""
        handle = manager.create(history_db)
        try:
            assert handle.snapshot_path.parent == snapshot_dir
            assert handle.snapshot_path.name.startswith("dbcopy")
            assert handle.snapshot_path.read_bytes() == history_db.read_bytes()
            assert handle.source_path == history_db
        finally:
            manager.release(handle)

        assert not handle.snapshot_path.exists()
        assert list(snapshot_dir.iterdir()) == []

    def test_unique_paths(self, manager, history_db):
        first = manager.create(history_db)
        second = manager.create(history_db)
        try:
            assert first.snapshot_path != second.snapshot_path
        finally:
            manager.release(first)
            manager.release(second)

    def test_source_not_modified(self, manager, history_db):
        """コピー元の内容と更新時刻は変わらない"""
        before = history_db.read_bytes()
        mtime = history_db.stat().st_mtime_ns

        with manager.open(history_db):
            pass

        assert history_db.read_bytes() == before
        assert history_db.stat().st_mtime_ns == mtime
        assert history_db.exists()

    def test_copy_while_source_locked(self, manager, history_db):
        """別接続が排他ロックを保持していてもコピーできる"""
        holder = sqlite3.connect(history_db)
        holder.execute("BEGIN EXCLUSIVE")
        try:
            with manager.open(history_db) as handle:
                assert handle.snapshot_path.stat().st_size == history_db.stat().st_size
        finally:
            holder.rollback()
            holder.close()

    def test_open_releases_on_exception(self, manager, history_db, snapshot_dir):
        with pytest.raises(RuntimeError):
            with manager.open(history_db) as handle:
                assert handle.snapshot_path.exists()
                raise RuntimeError("boom")

        assert list(snapshot_dir.iterdir()) == []

    def test_release_removes_side_files(self, manager, history_db, snapshot_dir):
        handle = manager.create(history_db)
        for suffix in ("-journal", "-wal", "-shm"):
            Path(f"{handle.snapshot_path}{suffix}").write_bytes(b"")

        manager.release(handle)

        assert list(snapshot_dir.iterdir()) == []

    def test_release_twice(self, manager, history_db):
        handle = manager.create(history_db)
        manager.release(handle)
        manager.release(handle)
        assert not handle.snapshot_path.exists()

    def test_missing_source_copy_failed(self, manager, tmp_path, snapshot_dir):
        """存在しないファイルはCOPY_FAILED"""
        missing = tmp_path / "nonexistent" / "History"

        with pytest.raises(SnapshotError) as exc_info:
            manager.create(missing)

        assert exc_info.value.kind is SnapshotErrorKind.COPY_FAILED
        assert exc_info.value.path == str(missing)
        assert isinstance(exc_info.value.cause, OSError)
        assert list(snapshot_dir.iterdir()) == []

    def test_disk_full_removes_placeholder(self, manager, history_db, snapshot_dir):
        """コピー途中の失敗でも一時ファイルは残らない"""
        disk_full = OSError(errno.ENOSPC, "No space left on device")
        with patch("src.recent_history.snapshot.shutil.copyfile", side_effect=disk_full):
            with pytest.raises(SnapshotError) as exc_info:
                manager.create(history_db)

        assert exc_info.value.kind is SnapshotErrorKind.COPY_FAILED
        assert exc_info.value.cause is disk_full
        assert list(snapshot_dir.iterdir()) == []

    def test_missing_temp_dir(self, history_db, tmp_path):
        """一時ディレクトリが無い場合はNO_TEMP_DIR"""
        manager = SnapshotManager(temp_dir=tmp_path / "no_such_dir")

        with pytest.raises(SnapshotError) as exc_info:
            manager.create(history_db)

        assert exc_info.value.kind is SnapshotErrorKind.NO_TEMP_DIR

    def test_temp_dir_is_file(self, history_db, tmp_path):
        not_a_dir = tmp_path / "file.txt"
        not_a_dir.write_text("x")

        with pytest.raises(SnapshotError) as exc_info:
            SnapshotManager(temp_dir=not_a_dir).create(history_db)

        assert exc_info.value.kind is SnapshotErrorKind.NO_TEMP_DIR

    def test_no_usable_platform_temp_dir(self, history_db):
        with patch(
            "src.recent_history.snapshot.tempfile.gettempdir",
            side_effect=FileNotFoundError("No usable temporary directory found"),
        ):
            with pytest.raises(SnapshotError) as exc_info:
                SnapshotManager().create(history_db)

        assert exc_info.value.kind is SnapshotErrorKind.NO_TEMP_DIR

    def test_concurrent_snapshots(self, manager, history_db, snapshot_dir):
        """複数スレッドから同時に作成しても衝突しない"""
        paths = []
        errors = []
        lock = threading.Lock()

        def worker():
            try:
                with manager.open(history_db) as handle:
                    with lock:
                        paths.append(handle.snapshot_path)
            except Exception as e:  # pragma: no cover
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(set(paths)) == 8
        assert list(snapshot_dir.iterdir()) == []


def test_module_level_helpers(history_db, snapshot_dir):
    handle = snapshot(history_db, temp_dir=snapshot_dir)
    assert handle.snapshot_path.exists()
    release(handle)
    assert list(snapshot_dir.iterdir()) == []
