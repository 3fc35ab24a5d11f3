from __future__ import annotations
import sys

from loguru import logger

from .paths import logs_dir
from .settings import get_setting

def configure_logging() -> None:
    logger.remove()
    log_path = logs_dir() / "sling_app.log"
    logger.add(str(log_path), rotation="5 MB", retention=10, enqueue=True, backtrace=False, diagnose=False)
    logger.add(sys.stderr, level=str(get_setting("log_level", "INFO")).upper())  # console
