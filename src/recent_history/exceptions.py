"""recent_historyのカスタム例外定義

失敗はすべて1つの履歴ストアの抽出に閉じたものとして扱います。
行単位の不備は例外にせず、抽出側でスキップします。
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional, Union


class SnapshotErrorKind(str, Enum):
    """スナップショット作成失敗の種類"""

    NO_TEMP_DIR = "no_temp_dir"
    COPY_FAILED = "copy_failed"


class ExtractErrorKind(str, Enum):
    """履歴抽出失敗の種類"""

    SNAPSHOT_FAILED = "snapshot_failed"
    OPEN_FAILED = "open_failed"
    QUERY_FAILED = "query_failed"


class RecentHistoryError(Exception):
    """recent_history基底例外"""

    pass


class SnapshotError(RecentHistoryError):
    """ロック中ストアの一時コピーに失敗"""

    def __init__(
        self,
        kind: SnapshotErrorKind,
        path: Union[str, Path, None] = None,
        cause: Optional[BaseException] = None,
    ):
        self.kind = kind
        self.path = str(path) if path is not None else None
        self.cause = cause
        message = f"{kind.value}: {self.path}"
        if cause is not None:
            message += f" ({cause})"
        super().__init__(message)


class ExtractError(RecentHistoryError):
    """スナップショットのオープン・クエリ失敗"""

    def __init__(
        self,
        kind: ExtractErrorKind,
        path: Union[str, Path, None] = None,
        cause: Optional[BaseException] = None,
    ):
        self.kind = kind
        self.path = str(path) if path is not None else None
        self.cause = cause
        message = f"{kind.value}: {self.path}"
        if cause is not None:
            message += f" ({cause})"
        super().__init__(message)


class FormatError(RecentHistoryError, ValueError):
    """暦日時として表現できないタイムスタンプ"""

    pass


class ConfigurationError(RecentHistoryError):
    """設定エラー"""

    pass
