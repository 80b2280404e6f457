"""Locate Chromium-family History files for the current user."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from .exceptions import ConfigurationError


@dataclass(frozen=True)
class BrowserInfo:
    """
    ブラウザごとのユーザーデータ配置

    Attributes:
        id: 識別子（chrome, edge, brave）
        label: 表示名
        windows: %LOCALAPPDATA% からの相対パス
        macos: ~/Library/Application Support からの相対パス
        linux: ~/.config からの相対パス
    """

    id: str
    label: str
    windows: str
    macos: str
    linux: str


BROWSERS: Dict[str, BrowserInfo] = {
    "chrome": BrowserInfo(
        id="chrome",
        label="Chrome",
        windows="Google/Chrome/User Data",
        macos="Google/Chrome",
        linux="google-chrome",
    ),
    "edge": BrowserInfo(
        id="edge",
        label="Edge",
        windows="Microsoft/Edge/User Data",
        macos="Microsoft Edge",
        linux="microsoft-edge",
    ),
    "brave": BrowserInfo(
        id="brave",
        label="Brave",
        windows="BraveSoftware/Brave-Browser/User Data",
        macos="BraveSoftware/Brave-Browser",
        linux="BraveSoftware/Brave-Browser",
    ),
}

# WSL2から見たWindows側ユーザーディレクトリで除外するもの
_WSL_SKIP_USERS = {"All Users", "Default", "Default User", "Public"}


def get_browser(browser: str) -> BrowserInfo:
    """識別子からBrowserInfoを取得"""
    try:
        return BROWSERS[browser.lower()]
    except KeyError:
        valid = ", ".join(BROWSERS)
        raise ConfigurationError(f"Unknown browser: {browser} (available: {valid})") from None


def history_path(
    browser: str,
    profile: str = "Default",
    home: Optional[Path] = None,
    platform: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Path:
    """
    現在のプラットフォームでの History ファイルの想定パス

    Args:
        browser: ブラウザ識別子
        profile: プロファイルディレクトリ名
        home: ホームディレクトリ（Noneで Path.home()）
        platform: sys.platform 相当の値（テスト用）
        environ: 環境変数（テスト用）

    Returns:
        Historyファイルのパス（存在するとは限らない）
    """
    info = get_browser(browser)
    home = Path(home) if home else Path.home()
    platform = platform or sys.platform
    environ = os.environ if environ is None else environ

    if platform.startswith("win"):
        local_app_data = environ.get("LOCALAPPDATA")
        base = Path(local_app_data) if local_app_data else home / "AppData" / "Local"
        user_data = base / info.windows
    elif platform == "darwin":
        user_data = home / "Library" / "Application Support" / info.macos
    else:
        config_home = environ.get("XDG_CONFIG_HOME")
        base = Path(config_home) if config_home else home / ".config"
        user_data = base / info.linux

    return user_data / profile / "History"


def _wsl_candidates(info: BrowserInfo, profile: str, wsl_users: Path) -> List[Path]:
    if not wsl_users.is_dir():
        return []
    candidates = []
    for user_dir in sorted(wsl_users.iterdir()):
        if user_dir.name in _WSL_SKIP_USERS:
            continue
        candidates.append(
            user_dir / "AppData" / "Local" / info.windows / profile / "History"
        )
    return candidates


def find_history_path(
    browser: str,
    profile: str = "Default",
    home: Optional[Path] = None,
    platform: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    wsl_users: Path = Path("/mnt/c/Users"),
) -> Optional[Path]:
    """
    History ファイルを自動検出

    Returns:
        最初に見つかったHistoryファイルのパス（見つからない場合None）
    """
    info = get_browser(browser)
    candidates = [history_path(browser, profile, home, platform, environ)]
    candidates += _wsl_candidates(info, profile, wsl_users)

    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None
