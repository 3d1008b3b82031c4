import logging
import sys

from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, MutableMapping

from musicsync.config import get_settings


# ANSI color codes for terminal output
class LogColors:
    RESET = "\033[0m"
    RED = "\033[91m"
    BLUE = "\033[94m"
    YELLOW = "\033[93m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"


class ColoredFormatter(logging.Formatter):
    """Console formatter that colours the level name"""

    COLORS = {
        logging.DEBUG: LogColors.GRAY,
        logging.INFO: LogColors.BLUE,
        logging.WARNING: LogColors.YELLOW,
        logging.ERROR: LogColors.RED,
        logging.CRITICAL: LogColors.MAGENTA,
    }

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        color = self.COLORS.get(record.levelno)
        if color:
            record.levelname = f"{color}{levelname}{LogColors.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


class ConnectionLoggerAdapter(logging.LoggerAdapter):
    """Prefixes every record with the connection (and room, once known)."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]):
        connection_id = self.extra.get("connection_id", "-")
        room_code = self.extra.get("room_code")
        prefix = f"[{connection_id}]" if not room_code else f"[{connection_id}@{room_code}]"
        return f"{prefix} {msg}", kwargs


def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Call this once at application startup, before the FastAPI app is created.
    """
    settings = get_settings()

    root_logger = logging.getLogger()
    root_logger.setLevel(settings.log_level)

    # Remove existing handlers to avoid duplicates on reload
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(settings.log_level)

    if settings.is_development:
        formatter = ColoredFormatter(
            fmt="%(levelname)s:\t%(asctime)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
    else:
        formatter = logging.Formatter(
            fmt="%(levelname)s:%(asctime)s:%(name)s:%(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if settings.is_production:
        log_dir = Path("logs")
        log_dir.mkdir(exist_ok=True)

        # 10MB per file, 5 backups
        file_handler = RotatingFileHandler(
            filename=log_dir / "musicsync.log",
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8"
        )
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    logging.getLogger("websockets").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    # Let uvicorn records propagate to our handlers
    for name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        logging.getLogger(name).handlers.clear()


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module.

    Usage:
        from musicsync.core.logging import get_logger
        logger = get_logger(__name__)
    """
    return logging.getLogger(name)


def get_connection_logger(name: str, connection_id: str, room_code: str | None = None) -> ConnectionLoggerAdapter:
    """Logger bound to a single event connection."""
    return ConnectionLoggerAdapter(
        logging.getLogger(name),
        {"connection_id": connection_id, "room_code": room_code},
    )
