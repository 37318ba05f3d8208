# happytails/core/log_config.py
import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from happytails.core.config import get_settings

LOG_FORMAT = "[%(asctime)s] %(levelname)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Keep two weeks of daily error logs
ERROR_LOG_BACKUPS = 14


def configure_logging() -> None:
    """
    Configure root logging once at startup.

    - Console output at LOG_LEVEL.
    - If LOG_DIR is set: errors also go to <LOG_DIR>/errors.log,
      rotated at midnight and kept for ERROR_LOG_BACKUPS days.
    """
    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
    )

    if not settings.LOG_DIR:
        return

    root = logging.getLogger()
    if any(isinstance(h, TimedRotatingFileHandler) for h in root.handlers):
        return

    log_dir = Path(settings.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)

    handler = TimedRotatingFileHandler(
        log_dir / "errors.log",
        when="midnight",
        backupCount=ERROR_LOG_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(logging.ERROR)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)
