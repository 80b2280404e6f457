"""
Chromium履歴DBから直近の訪問URLを抽出

処理の流れ:
- 履歴DBのスナップショットを作成（SnapshotManager.open）
- スナップショットを読み取り専用で開き、urls と visits を結合して取得
- visit_time の降順で1行ずつ処理し、RecencyWindow で絞り込み
- 一致した行を FormattedEntry にして呼び出し元へ渡す
- スナップショットを削除（成功・失敗を問わず）
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Callable, Iterator, Optional, Union

from . import timestamp_codec
from .exceptions import ExtractError, ExtractErrorKind, SnapshotError
from .models import ExtractResult, FormattedEntry, RecencyWindow, StoreRecord
from .snapshot import SnapshotManager

logger = logging.getLogger(__name__)

HISTORY_QUERY = (
    "SELECT u.url, v.visit_time FROM urls u "
    "JOIN visits v ON u.id = v.url "
    "ORDER BY v.visit_time DESC"
)


def decode_text(raw: Union[bytes, str, None]) -> str:
    """
    DBに保存されたUTF-8バイト列を文字列に変換

    変換できない場合は空文字列を返します。
    """
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return ""


class HistoryExtractor:
    """
    履歴抽出器

    インスタンスは状態を持たないため、別スレッドから
    別々のストアに対して同時に使っても問題ありません。
    """

    def __init__(self, snapshot_manager: Optional[SnapshotManager] = None):
        """
        Args:
            snapshot_manager: SnapshotManagerインスタンス
        """
        self.snapshot_manager = snapshot_manager or SnapshotManager()

    def _connect(self, snapshot_path: Path) -> sqlite3.Connection:
        """スナップショットを読み取り専用で開き、SQLiteファイルか検証"""
        uri = f"{snapshot_path.resolve().as_uri()}?mode=ro"
        try:
            conn = sqlite3.connect(uri, uri=True)
        except sqlite3.Error as e:
            raise ExtractError(ExtractErrorKind.OPEN_FAILED, snapshot_path, e) from e

        # URLは不正なUTF-8を含み得るため、バイト列のまま受け取る
        conn.text_factory = bytes
        try:
            conn.execute("PRAGMA schema_version").fetchone()
        except sqlite3.Error as e:
            conn.close()
            raise ExtractError(ExtractErrorKind.OPEN_FAILED, snapshot_path, e) from e
        return conn

    def _records(self, conn: sqlite3.Connection, store_path: Path) -> Iterator[StoreRecord]:
        try:
            cursor = conn.execute(HISTORY_QUERY)
        except sqlite3.Error as e:
            raise ExtractError(ExtractErrorKind.QUERY_FAILED, store_path, e) from e

        with closing(cursor):
            while True:
                try:
                    row = cursor.fetchone()
                except sqlite3.Error as e:
                    raise ExtractError(ExtractErrorKind.QUERY_FAILED, store_path, e) from e
                if row is None:
                    return
                yield StoreRecord(url=row[0], visit_time=row[1])

    def iter_entries(
        self, store_path: Union[str, Path], window: RecencyWindow
    ) -> Iterator[FormattedEntry]:
        """
        ウィンドウ内の訪問を1件ずつ返すジェネレータ

        Args:
            store_path: 履歴DB（History）のパス
            window: 対象とする時間範囲

        Yields:
            FormattedEntry: visit_time 降順

        Raises:
            SnapshotError: スナップショットの作成に失敗した場合
            ExtractError: スナップショットを開けない（OPEN_FAILED）、
                または想定したテーブルがない（QUERY_FAILED）場合
        """
        store_path = Path(store_path)
        with self.snapshot_manager.open(store_path) as handle:
            with closing(self._connect(handle.snapshot_path)) as conn:
                for record in self._records(conn, store_path):
                    if not isinstance(record.visit_time, int):
                        logger.debug("Skipping row with invalid visit_time: %r", record.visit_time)
                        continue

                    visit_seconds = timestamp_codec.decode(record.visit_time)
                    if not window.matches(visit_seconds):
                        continue

                    url = decode_text(record.url)
                    if not url:
                        logger.debug("Skipping row with unreadable url in %s", store_path)
                        continue

                    yield FormattedEntry(
                        url=url,
                        visit_time_utc=timestamp_codec.format_utc_or_sentinel(visit_seconds),
                    )

    def extract(
        self,
        store_path: Union[str, Path],
        window: RecencyWindow,
        sink: Callable[[FormattedEntry], None],
    ) -> ExtractResult:
        """
        ウィンドウ内の訪問を sink に渡す

        失敗は例外にせず ExtractResult.error として返します。

        Args:
            store_path: 履歴DB（History）のパス
            window: 対象とする時間範囲
            sink: FormattedEntryを受け取るコールバック

        Returns:
            ExtractResult: 抽出結果
        """
        result = ExtractResult(source_path=str(store_path))
        try:
            with closing(self.iter_entries(store_path, window)) as entries:
                for entry in entries:
                    sink(entry)
                    result.emitted += 1
        except SnapshotError as e:
            result.error = ExtractError(ExtractErrorKind.SNAPSHOT_FAILED, store_path, e)
        except ExtractError as e:
            result.error = e

        if result.ok:
            logger.info("Extracted %d entries from %s", result.emitted, store_path)
        else:
            logger.warning(result.describe())
        return result


def extract(
    store_path: Union[str, Path],
    window: RecencyWindow,
    sink: Callable[[FormattedEntry], None],
    temp_dir: Union[str, Path, None] = None,
) -> ExtractResult:
    """既定設定のHistoryExtractorで抽出"""
    extractor = HistoryExtractor(SnapshotManager(temp_dir=temp_dir))
    return extractor.extract(store_path, window, sink)
