"""共通フィクスチャ"""

import sqlite3
from pathlib import Path
from typing import Iterable, Optional, Tuple, Union

import pytest

from src.recent_history import timestamp_codec

# 2024-01-01 00:00:00 UTC
JAN_1_2024 = 1_704_067_200


def webkit(unix_seconds: int) -> int:
    """Unix秒をWebKitタイムスタンプに変換（テストデータ用）"""
    return timestamp_codec.encode(unix_seconds)


def create_history_db(
    db_path: Path, visits: Iterable[Tuple[Optional[Union[str, bytes]], int]]
) -> Path:
    """
    Chromium形式のモック履歴DBを作成

    Args:
        db_path: 作成先
        visits: (url, visit_time) のリスト。url が bytes の場合は不正UTF-8のテキストとして保存
    """
    conn = sqlite3.connect(db_path)
    conn.execute(
        """
        CREATE TABLE urls (
            id INTEGER PRIMARY KEY,
            url LONGVARCHAR,
            title LONGVARCHAR,
            visit_count INTEGER DEFAULT 0 NOT NULL
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE visits (
            id INTEGER PRIMARY KEY,
            url INTEGER NOT NULL,
            visit_time INTEGER NOT NULL,
            transition INTEGER DEFAULT 0 NOT NULL
        )
        """
    )

    for index, (url, visit_time) in enumerate(visits, start=1):
        if isinstance(url, bytes):
            conn.execute(
                "INSERT INTO urls (id, url, title) VALUES (?, CAST(? AS TEXT), ?)",
                (index, url, None),
            )
        else:
            conn.execute(
                "INSERT INTO urls (id, url, title) VALUES (?, ?, ?)",
                (index, url, None),
            )
        conn.execute(
            "INSERT INTO visits (id, url, visit_time) VALUES (?, ?, ?)",
            (index, index, visit_time),
        )

    conn.commit()
    conn.close()
    return db_path


@pytest.fixture
def snapshot_dir(tmp_path):
    """スナップショット専用の一時ディレクトリ（残存ファイル確認用）"""
    directory = tmp_path / "snapshots"
    directory.mkdir()
    return directory


@pytest.fixture
def history_db(tmp_path):
    """2024-01-01 00:00:00 と 00:09:00 の訪問を含む履歴DB"""
    return create_history_db(
        tmp_path / "History",
        [
            ("https://old.example.com", webkit(JAN_1_2024)),
            ("https://example.com", webkit(JAN_1_2024 + 9 * 60)),
        ],
    )
