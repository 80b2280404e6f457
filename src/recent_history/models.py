"""Data models for recent history extraction."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from . import timestamp_codec
from .exceptions import ExtractError, ExtractErrorKind, SnapshotError


@dataclass(frozen=True)
class StoreRecord:
    """
    履歴DBの1訪問レコード

    Attributes:
        url: urls.url の生の値（NULLや不正なUTF-8の場合あり）
        visit_time: visits.visit_time（WebKitタイムスタンプ）
    """

    url: Union[bytes, str, None]
    visit_time: int


@dataclass(frozen=True)
class RecencyWindow:
    """
    直近何秒以内の訪問を対象とするかを表す値オブジェクト

    Attributes:
        reference_time: 判定の基準時刻
        duration: 許容する経過時間（0以上）
    """

    reference_time: datetime
    duration: timedelta

    def __post_init__(self):
        if self.duration < timedelta(0):
            raise ValueError(f"duration must be non-negative: {self.duration}")

    @classmethod
    def last(
        cls, seconds: float = 600, reference_time: Optional[datetime] = None
    ) -> "RecencyWindow":
        """基準時刻（省略時は現在UTC）から遡る seconds 秒のウィンドウを作成"""
        if reference_time is None:
            reference_time = datetime.now(timezone.utc)
        return cls(reference_time=reference_time, duration=timedelta(seconds=seconds))

    @property
    def reference_seconds(self) -> int:
        return timestamp_codec.from_datetime(self.reference_time)

    def matches(self, visit_seconds: int) -> bool:
        """
        訪問時刻がウィンドウ内かを判定

        基準時刻より未来の訪問（差が負）も一致として扱います。
        """
        elapsed = self.reference_seconds - visit_seconds
        return elapsed <= self.duration.total_seconds()


@dataclass(frozen=True)
class FormattedEntry:
    """出力1件分（URLとUTC訪問時刻文字列）"""

    url: str
    visit_time_utc: str

    def to_line(self) -> str:
        return f"URL: {self.url}, Visit Time (UTC): {self.visit_time_utc}"

    def to_dict(self) -> dict:
        """辞書形式に変換（JSON出力用）"""
        return {"url": self.url, "visit_time_utc": self.visit_time_utc}


@dataclass
class ExtractResult:
    """
    1ストア分の抽出結果

    Attributes:
        source_path: 対象の履歴DBパス
        emitted: sinkへ渡したエントリ数
        error: 失敗時のExtractError（成功時None）
    """

    source_path: str
    emitted: int = 0
    error: Optional[ExtractError] = field(default=None)

    @property
    def ok(self) -> bool:
        return self.error is None

    def describe(self) -> str:
        """失敗内容を1行で説明（成功時は件数）"""
        if self.error is None:
            return f"{self.emitted} entries from {self.source_path}"

        kind = self.error.kind
        cause = self.error.cause
        if kind is ExtractErrorKind.SNAPSHOT_FAILED and isinstance(cause, SnapshotError):
            detail = f"SnapshotError({cause.kind.name})"
            if cause.cause is not None:
                detail += f": {cause.cause}"
        else:
            detail = f"ExtractError({kind.name})"
            if cause is not None:
                detail += f": {cause}"
        return f"Failed to read {self.source_path}: {detail}"
