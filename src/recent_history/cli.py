#!/usr/bin/env python3
"""
直近の閲覧履歴を表示するCLI

Usage:
    python -m src.recent_history [PATH ...] [--browser chrome|edge|brave] [--window-seconds N]
                                 [--reference-time ISO8601] [--format text|json] [--config FILE]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import Config
from .exceptions import ConfigurationError
from .extractor import HistoryExtractor
from .logger import setup_logger
from .models import FormattedEntry, RecencyWindow
from .profiles import find_history_path, get_browser, history_path
from .snapshot import SnapshotManager

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config") / "app_config.yaml"


@dataclass
class StoreTarget:
    """処理対象の履歴DB"""

    label: str
    path: Path


def parse_reference_time(value: str) -> datetime:
    """ISO-8601文字列を解析（タイムゾーン無しはUTC）"""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def load_config(config_path: Optional[str]) -> Config:
    """--config、既定のconfig/app_config.yaml、環境変数の順で設定を読み込む"""
    if config_path:
        return Config.from_yaml(Path(config_path))
    if DEFAULT_CONFIG_PATH.exists():
        return Config.from_yaml(DEFAULT_CONFIG_PATH)
    return Config.from_env()


def resolve_targets(paths: List[str], browsers: List[str], profile: str) -> List[StoreTarget]:
    """明示パスがあればそれを、無ければブラウザ既定の History を対象にする"""
    if paths:
        return [StoreTarget(label=path, path=Path(path)) for path in paths]

    targets = []
    for browser in browsers:
        info = get_browser(browser)
        path = find_history_path(browser, profile) or history_path(browser, profile)
        targets.append(StoreTarget(label=info.label, path=path))
    return targets


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="ロック中のブラウザ履歴DBから直近の訪問URLを表示",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "paths",
        nargs="*",
        help="履歴DB（History）のパス（省略時は --browser の既定プロファイル）",
    )
    parser.add_argument("--config", help="設定ファイルのパス（デフォルト: config/app_config.yaml）")
    parser.add_argument(
        "--browser",
        action="append",
        dest="browsers",
        help="対象ブラウザ（chrome, edge, brave。複数指定可）",
    )
    parser.add_argument("--profile", help="プロファイルディレクトリ名（デフォルト: Default）")
    parser.add_argument("--window-seconds", type=int, help="対象とする経過秒数（デフォルト: 600）")
    parser.add_argument(
        "--reference-time",
        type=parse_reference_time,
        help="基準時刻（ISO-8601、デフォルト: 現在時刻）",
    )
    parser.add_argument(
        "--format",
        choices=["json", "text"],
        default="text",
        help="出力フォーマット（デフォルト: text）",
    )
    parser.add_argument("--log-level", help="ログレベル")
    parser.add_argument("--log-file", help="ログファイルのパス")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLIエントリポイント"""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
        if args.window_seconds is not None:
            config.window_seconds = args.window_seconds
        if args.browsers:
            config.browsers = args.browsers
        if args.profile:
            config.profile = args.profile
        if args.log_level:
            config.log_level = args.log_level
        if args.log_file:
            config.log_file = args.log_file

        setup_logger(config.log_level, config.log_file)
        window = RecencyWindow.last(config.window_seconds, args.reference_time)
        targets = resolve_targets(args.paths, config.browsers, config.profile)
    except (ConfigurationError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    extractor = HistoryExtractor(SnapshotManager(temp_dir=config.temp_dir))
    json_rows: List[Dict[str, Any]] = []
    failures = 0

    for index, target in enumerate(targets):
        logger.info("Checking %s history: %s", target.label, target.path)
        if args.format == "text":
            if index:
                print()
            print(f"Checking {target.label} browsing history:")

            def sink(entry: FormattedEntry) -> None:
                print(entry.to_line())

        else:

            def sink(entry: FormattedEntry, source: str = str(target.path)) -> None:
                json_rows.append({"source": source, **entry.to_dict()})

        result = extractor.extract(target.path, window, sink)
        if not result.ok:
            failures += 1
            print(result.describe(), file=sys.stderr)

    if args.format == "json":
        print(json.dumps(json_rows, ensure_ascii=False))

    if targets and failures == len(targets):
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
