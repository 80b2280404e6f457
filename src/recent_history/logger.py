"""
ロギング設定モジュール

抽出結果は標準出力に書くため、ログはファイルと標準エラーにのみ出力します。
"""

import logging
import sys
from pathlib import Path

from .exceptions import ConfigurationError

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logger(log_level: str = "WARNING", log_file: str = "logs/recent_history.log") -> Path:
    """
    ロガーのセットアップ

    Args:
        log_level: ログレベル (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: ログファイルのパス

    Returns:
        ログファイルのパス

    Raises:
        ConfigurationError: 不明なログレベルの場合
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ConfigurationError(f"Unknown log level: {log_level}")

    # ログディレクトリの作成
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # 標準エラーにはERROR以上のみ（ストア単位の失敗はCLIが表示する）
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.ERROR)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_path, encoding="utf-8"),
            console_handler,
        ],
        force=True,
    )
    return log_path
