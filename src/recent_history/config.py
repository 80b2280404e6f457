"""
設定管理モジュール

関連クラス:
  - cli.main: この設定を使用するエントリポイント
  - models.RecencyWindow: window_seconds から作成
"""

import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .exceptions import ConfigurationError
from .models import RecencyWindow

DEFAULT_WINDOW_SECONDS = 600


@dataclass
class Config:
    """アプリケーション設定クラス"""

    # 抽出設定
    window_seconds: int = DEFAULT_WINDOW_SECONDS  # デフォルト10分
    browsers: List[str] = field(default_factory=lambda: ["chrome", "edge"])
    profile: str = "Default"
    temp_dir: Optional[str] = None

    # ログ設定
    log_level: str = "WARNING"
    log_file: str = "logs/recent_history.log"

    def __post_init__(self):
        """値の検証"""
        if self.window_seconds < 0:
            raise ConfigurationError(f"window_seconds must be non-negative: {self.window_seconds}")

    def window(self, reference_time: Optional[datetime] = None) -> RecencyWindow:
        """設定値からRecencyWindowを作成"""
        return RecencyWindow.last(seconds=self.window_seconds, reference_time=reference_time)

    @classmethod
    def from_yaml(cls, config_path: Optional[Path] = None) -> "Config":
        """YAMLファイルから設定を読み込む

        Args:
            config_path: 設定ファイルパス（省略時はconfig/app_config.yamlを使用）

        Returns:
            Config: 設定インスタンス

        Raises:
            ConfigurationError: ファイルが無い、または内容が不正な場合
        """
        if config_path is None:
            project_root = Path(__file__).parent.parent.parent
            config_path = project_root / "config" / "app_config.yaml"

        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigurationError(f"Config file not found: {config_path}")

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                yaml_data: Dict[str, Any] = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid config file {config_path}: {e}") from e

        history_data = yaml_data.get("history", {}) or {}
        log_data = yaml_data.get("log", {}) or {}

        browsers = history_data.get("browsers", ["chrome", "edge"])
        if isinstance(browsers, str):
            browsers = [b.strip() for b in browsers.split(",") if b.strip()]

        try:
            window_seconds = int(history_data.get("window_seconds", DEFAULT_WINDOW_SECONDS))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid window_seconds in {config_path}") from e

        return cls(
            window_seconds=window_seconds,
            browsers=list(browsers),
            profile=history_data.get("profile", "Default"),
            temp_dir=history_data.get("temp_dir"),
            log_level=log_data.get("level", "WARNING"),
            log_file=log_data.get("file", "logs/recent_history.log"),
        )

    @classmethod
    def from_env(cls) -> "Config":
        """環境変数から設定を読み込む"""
        browsers = os.getenv("RECENT_HISTORY_BROWSERS", "chrome,edge")
        try:
            window_seconds = int(
                os.getenv("RECENT_HISTORY_WINDOW_SECONDS", str(DEFAULT_WINDOW_SECONDS))
            )
        except ValueError as e:
            raise ConfigurationError("RECENT_HISTORY_WINDOW_SECONDS must be an integer") from e

        return cls(
            window_seconds=window_seconds,
            browsers=[b.strip() for b in browsers.split(",") if b.strip()],
            profile=os.getenv("RECENT_HISTORY_PROFILE", "Default"),
            temp_dir=os.getenv("RECENT_HISTORY_TEMP_DIR") or None,
            log_level=os.getenv("LOG_LEVEL", "WARNING"),
            log_file=os.getenv("LOG_FILE", "logs/recent_history.log"),
        )
