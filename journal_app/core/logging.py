from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

from journal_app.core.config import AppConfig, ConfigManager
from journal_app.core.paths import logs_dir

LOG_FILE_NAME = "journal.log"
_CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "{name}:{line} - <level>{message}</level>"
)

_LOG_FILE: Path | None = None


def _resolve_log_dir(config: AppConfig, log_dir: Path | None) -> Path:
    if log_dir is not None:
        return Path(log_dir)
    if config.log_dir:
        return Path(config.log_dir).expanduser()
    return logs_dir()


def init_logging(config: AppConfig | None = None, log_dir: Path | None = None) -> Path | None:
    """Route Loguru output according to ``AppConfig``.

    Console output always goes to stderr at ``log_level``. When ``log_to_file``
    is on, a rotating ``journal.log`` is added under ``log_dir`` (argument,
    then config, then ``<data_dir>/logs``). Returns the file path, or ``None``
    when only the console sink is active.
    """
    global _LOG_FILE
    config = config or ConfigManager.get().config

    logger.remove()
    logger.add(
        sys.stderr,
        level=config.log_level,
        format=_CONSOLE_FORMAT,
        backtrace=False,
        diagnose=False,
    )

    if not config.log_to_file:
        _LOG_FILE = None
        logger.info("Logging to console only (level {})", config.log_level)
        return None

    resolved_dir = _resolve_log_dir(config, log_dir)
    resolved_dir.mkdir(parents=True, exist_ok=True)
    log_file = resolved_dir / LOG_FILE_NAME
    logger.add(
        log_file,
        level=config.log_level,
        rotation=config.log_rotation,
        retention=config.log_retention,
        compression="zip",
        enqueue=True,
        backtrace=True,
        diagnose=False,
    )
    _LOG_FILE = log_file
    logger.info("Logging at level {} to {}", config.log_level, log_file)
    return log_file


def get_log_file() -> Path | None:
    return _LOG_FILE


__all__ = ["LOG_FILE_NAME", "get_log_file", "init_logging"]
