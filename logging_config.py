"""Project-wide logging setup.

The engine modules only create named loggers (``logging.getLogger(__name__)``);
applications call ``setup_logging()`` once to decide where records go.

- Log records go to a UTF-8 rotating file (``logs/cardgame.log`` by default).
- Console output is off unless enabled, so the rich demo output stays clean.
- Idempotent: calling setup_logging() again updates the existing handlers.

Usage:
    from logging_config import setup_logging
    setup_logging(level="DEBUG", enable_console=True)

Environment overrides:
    CARDGAME_LOG_LEVEL=DEBUG|INFO|WARNING|ERROR
    CARDGAME_LOG_FILE=path/to/file.log
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

DEFAULT_LOG_FILE = Path("logs") / "cardgame.log"

_FILE_HANDLER_NAME = "cardgame_file"
_CONSOLE_HANDLER_NAME = "cardgame_console"

_FORMAT = "%(asctime)s %(levelname)-8s %(name)s:%(lineno)d | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def parse_level(level: str | int | None) -> int:
    """Map a level name (case-insensitive) or number to a logging level; default INFO."""
    if isinstance(level, int):
        return level
    name = (level or "").strip().upper()
    return logging._nameToLevel.get(name, logging.INFO) if name else logging.INFO


def _resolve_log_path(log_file: str | os.PathLike[str] | None) -> Path:
    path = Path(log_file) if log_file else DEFAULT_LOG_FILE
    if not path.is_absolute():
        path = Path.cwd() / path
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def setup_logging(
    *,
    level: str | int = "INFO",
    log_file: str | os.PathLike[str] | None = None,
    enable_file: bool = True,
    enable_console: bool = False,
    console_level: str | int = "WARNING",
    max_bytes: int = 2 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """Configure the root logger and return it."""
    level = os.environ.get("CARDGAME_LOG_LEVEL") or level
    log_file = os.environ.get("CARDGAME_LOG_FILE") or log_file

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)  # handlers do the filtering

    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATE_FORMAT)
    existing = {getattr(h, "name", ""): h for h in root.handlers}

    log_path: Path | None = None
    if enable_file:
        log_path = _resolve_log_path(log_file)
        file_handler = existing.get(_FILE_HANDLER_NAME)
        if file_handler is None:
            file_handler = RotatingFileHandler(
                str(log_path),
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
            file_handler.name = _FILE_HANDLER_NAME
            root.addHandler(file_handler)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(parse_level(level))

    if enable_console:
        console_handler = existing.get(_CONSOLE_HANDLER_NAME)
        if console_handler is None:
            console_handler = logging.StreamHandler()
            console_handler.name = _CONSOLE_HANDLER_NAME
            root.addHandler(console_handler)
        console_handler.setFormatter(formatter)
        console_handler.setLevel(parse_level(console_level))

    logging.getLogger(__name__).info(
        "Logging initialized | level=%s file=%s console=%s",
        level,
        log_path,
        enable_console,
    )
    return root
