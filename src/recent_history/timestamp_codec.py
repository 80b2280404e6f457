"""WebKit timestamp conversion.

Chromium系ブラウザの履歴DBは 1601-01-01 UTC からのマイクロ秒で
訪問時刻を保存します。ここではUnix秒との相互変換とUTC表示を扱います。
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from .exceptions import FormatError

# Chromiumエポック（1601年1月1日）からUnixエポック（1970年1月1日）までの秒数
WEBKIT_EPOCH_OFFSET = 11_644_473_600

MICROSECONDS_PER_SECOND = 1_000_000

INVALID_TIME = "Invalid time"

_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def decode(encoded: int) -> int:
    """
    WebKitタイムスタンプ（マイクロ秒）をUnix秒に変換

    秒未満は0方向に切り捨てます（丸めない）。

    Args:
        encoded: 1601年1月1日からのマイクロ秒

    Returns:
        Unixエポックからの秒数
    """
    seconds = abs(encoded) // MICROSECONDS_PER_SECOND
    if encoded < 0:
        seconds = -seconds
    return seconds - WEBKIT_EPOCH_OFFSET


def encode(unix_seconds: int) -> int:
    """Unix秒をWebKitタイムスタンプ（マイクロ秒）に変換"""
    return (unix_seconds + WEBKIT_EPOCH_OFFSET) * MICROSECONDS_PER_SECOND


def from_datetime(dt: datetime) -> int:
    """datetimeをUnix秒に変換（naiveはUTCとみなす）"""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    delta = dt - _UNIX_EPOCH
    return delta.days * 86_400 + delta.seconds


def to_datetime(unix_seconds: int) -> datetime:
    """
    Unix秒をUTCのdatetimeに変換

    Raises:
        FormatError: 暦日時として表現できない場合
    """
    try:
        return _UNIX_EPOCH + timedelta(seconds=unix_seconds)
    except (OverflowError, ValueError) as e:
        raise FormatError(f"Timestamp out of range: {unix_seconds}") from e


def format_utc(unix_seconds: int) -> str:
    """Unix秒を "YYYY-MM-DD HH:MM:SS"（UTC）形式に整形"""
    dt = to_datetime(unix_seconds)
    return dt.replace(tzinfo=None).isoformat(sep=" ")


def format_utc_or_sentinel(unix_seconds: int) -> str:
    """format_utcと同じだが、変換できない場合は INVALID_TIME を返す"""
    try:
        return format_utc(unix_seconds)
    except FormatError:
        return INVALID_TIME
