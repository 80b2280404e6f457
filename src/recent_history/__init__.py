"""Recent browsing history extraction from locked Chromium History databases."""

from .exceptions import (
    ConfigurationError,
    ExtractError,
    ExtractErrorKind,
    FormatError,
    RecentHistoryError,
    SnapshotError,
    SnapshotErrorKind,
)
from .extractor import HistoryExtractor, extract
from .models import ExtractResult, FormattedEntry, RecencyWindow, StoreRecord
from .snapshot import SnapshotHandle, SnapshotManager

__all__ = [
    "ConfigurationError",
    "ExtractError",
    "ExtractErrorKind",
    "ExtractResult",
    "FormatError",
    "FormattedEntry",
    "HistoryExtractor",
    "RecencyWindow",
    "RecentHistoryError",
    "SnapshotError",
    "SnapshotErrorKind",
    "SnapshotHandle",
    "SnapshotManager",
    "StoreRecord",
    "extract",
]
