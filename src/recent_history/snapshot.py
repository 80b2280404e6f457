"""
ロック中の履歴DBを一時ファイルへ複製するスナップショット管理

ブラウザ起動中は History ファイルがロックされているため、
読み取り専用でバイト単位にコピーし、コピー側を開いて参照します。
コピーは抽出1回ごとに作成し、終了時には必ず削除します。
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional, Union

from .exceptions import SnapshotError, SnapshotErrorKind

logger = logging.getLogger(__name__)

# SQLiteがスナップショットの隣に作る可能性のあるファイル
_SIDE_FILE_SUFFIXES = ("-journal", "-wal", "-shm")


@dataclass(frozen=True)
class SnapshotHandle:
    """
    作成済みスナップショット

    Attributes:
        source_path: コピー元（参照のみ、所有しない）
        snapshot_path: 一時コピーのパス（SnapshotManagerが所有）
        created_at: 作成日時
    """

    source_path: Path
    snapshot_path: Path
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class SnapshotManager:
    """ロック中ファイルの一時コピーを作成・削除する"""

    def __init__(self, temp_dir: Union[str, Path, None] = None, prefix: str = "dbcopy"):
        """
        Args:
            temp_dir: 一時ファイルの作成先（Noneでプラットフォーム既定）
            prefix: 一時ファイル名の接頭辞
        """
        self.temp_dir = Path(temp_dir) if temp_dir else None
        self.prefix = prefix

    def _resolve_temp_dir(self) -> str:
        """書き込み可能な一時ディレクトリを返す"""
        if self.temp_dir is None:
            try:
                directory = tempfile.gettempdir()
            except FileNotFoundError as e:
                raise SnapshotError(SnapshotErrorKind.NO_TEMP_DIR, None, e) from e
        else:
            directory = str(self.temp_dir)

        if not os.path.isdir(directory) or not os.access(directory, os.W_OK | os.X_OK):
            raise SnapshotError(SnapshotErrorKind.NO_TEMP_DIR, directory)
        return directory

    def create(self, source_path: Union[str, Path]) -> SnapshotHandle:
        """
        source_path を一意な一時ファイルへコピー

        Args:
            source_path: コピー元の履歴DBパス

        Returns:
            SnapshotHandle: 作成したスナップショット

        Raises:
            SnapshotError: 一時ディレクトリがない（NO_TEMP_DIR）、
                またはコピーに失敗した（COPY_FAILED）場合
        """
        source = Path(source_path)
        directory = self._resolve_temp_dir()

        # mkstempはプロセス間でも一意なファイルを排他的に作成する
        try:
            fd, temp_name = tempfile.mkstemp(prefix=self.prefix, suffix=".tmp", dir=directory)
        except OSError as e:
            raise SnapshotError(SnapshotErrorKind.NO_TEMP_DIR, directory, e) from e
        os.close(fd)

        snapshot_path = Path(temp_name)
        try:
            shutil.copyfile(source, snapshot_path)
        except OSError as e:
            snapshot_path.unlink(missing_ok=True)
            raise SnapshotError(SnapshotErrorKind.COPY_FAILED, source, e) from e

        logger.debug("Snapshot created: %s -> %s", source, snapshot_path)
        return SnapshotHandle(source_path=source, snapshot_path=snapshot_path)

    def release(self, handle: SnapshotHandle) -> None:
        """スナップショットと付随ファイルを削除（既に無い場合も成功）"""
        paths = [handle.snapshot_path]
        paths += [Path(f"{handle.snapshot_path}{suffix}") for suffix in _SIDE_FILE_SUFFIXES]
        for path in paths:
            try:
                path.unlink(missing_ok=True)
            except OSError:
                logger.warning("Failed to remove snapshot file: %s", path, exc_info=True)
        logger.debug("Snapshot released: %s", handle.snapshot_path)

    @contextmanager
    def open(self, source_path: Union[str, Path]) -> Iterator[SnapshotHandle]:
        """
        スナップショットを作成し、ブロック終了時に必ず削除する

        Example:
            >>> manager = SnapshotManager()
            >>> with manager.open("History") as handle:
            ...     conn = sqlite3.connect(handle.snapshot_path)
        """
        handle = self.create(source_path)
        try:
            yield handle
        finally:
            self.release(handle)


def snapshot(
    source_path: Union[str, Path], temp_dir: Union[str, Path, None] = None
) -> SnapshotHandle:
    """既定設定のSnapshotManagerでスナップショットを作成"""
    return SnapshotManager(temp_dir=temp_dir).create(source_path)


def release(handle: SnapshotHandle, manager: Optional[SnapshotManager] = None) -> None:
    """スナップショットを削除"""
    (manager or SnapshotManager()).release(handle)
