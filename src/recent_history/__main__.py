"""直近履歴CLI実行用エントリポイント

Usage:
    python -m src.recent_history [PATH ...] [options]
"""

from .cli import main

if __name__ == "__main__":
    raise SystemExit(main())
