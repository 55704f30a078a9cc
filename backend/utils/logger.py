import logging
import os
from logging.handlers import RotatingFileHandler
import sys

# ログ出力先: MANTRA_LOG_DIR (server.py 経由で設定) があれば優先、なければ backend/logs
if "MANTRA_LOG_DIR" in os.environ:
    LOG_DIR = os.environ["MANTRA_LOG_DIR"]
else:
    BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    LOG_DIR = os.path.join(BASE_DIR, "logs")

os.makedirs(LOG_DIR, exist_ok=True)

LOG_FILE_NAME = "mantra.log"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

def _resolve_level() -> int:
    # ポーリングのログが多いので、本番では MANTRA_LOG_LEVEL=WARNING などで絞る
    level_name = os.environ.get("MANTRA_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)

def _file_handler(formatter: logging.Formatter, level: int):
    """10MBごとにローテーション, 最大5世代"""
    handler = RotatingFileHandler(
        os.path.join(LOG_DIR, LOG_FILE_NAME),
        maxBytes=10*1024*1024,
        backupCount=5,
        encoding='utf-8'
    )
    handler.setFormatter(formatter)
    handler.setLevel(level)
    return handler

def get_logger(name: str):
    """
    ファイル出力とコンソール出力を併用するロガーを取得する
    """
    logger = logging.getLogger(name)

    # ハンドラが重複して追加されないようにチェック
    if logger.handlers:
        return logger

    level = _resolve_level()
    logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT)

    try:
        logger.addHandler(_file_handler(formatter, level))
    except OSError as e:
        # 権限エラーなどでファイル作成できない場合はコンソールのみ
        print(f"Failed to set up file logging: {e}", file=sys.stderr)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    return logger
