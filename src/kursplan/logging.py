"""Log setup for the planner service.

Everything under the ``kursplan`` logger goes to one rotating file (and
optionally the console). Reconciliation demotions log at WARNING, persistence
rollbacks at ERROR and individual mutations at DEBUG, so INFO is the usual
level for a running service.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

from kursplan.config import LoggingConfig

ROOT_LOGGER = "kursplan"
LOG_DIR_ENV = "KURSPLAN_LOG_DIR"
LOG_LEVEL_ENV = "KURSPLAN_LOG_LEVEL"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Chatty third-party loggers, held at WARNING unless the planner runs at DEBUG
LIBRARY_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine", "uvicorn.access")


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(config: LoggingConfig | None = None, *, console: bool = True) -> logging.Logger:
    """Attach file and console handlers to the ``kursplan`` logger.

    ``KURSPLAN_LOG_DIR`` and ``KURSPLAN_LOG_LEVEL`` win over the config so an
    operator can redirect or raise logging without editing the YAML file.
    Calling this again replaces the handlers instead of stacking them.

    Args:
        config: Logging section of the planner config. Defaults apply when None.
        console: Also write to stderr.

    Returns:
        The ``kursplan`` logger.
    """
    if config is None:
        config = LoggingConfig()

    log_dir = Path(os.environ.get(LOG_DIR_ENV) or config.dir or "logs")
    level_name = (os.environ.get(LOG_LEVEL_ENV) or config.level).upper()
    level = _resolve_level(level_name)

    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / config.file

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = [
        RotatingFileHandler(
            log_path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())

    logger = logging.getLogger(ROOT_LOGGER)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(level)

    library_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    logger.info("Logging to %s at %s", log_path, level_name)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger below ``kursplan`` for a component such as ``"store"``."""
    if name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def truncate_output(output: str, max_length: int = 2000) -> str:
    """Cut ``output`` to ``max_length`` characters for a log line or error message.

    The cut is marked with the number of characters left out, e.g. an HTTP
    error body of a failed bulk-save.
    """
    if len(output) <= max_length:
        return output
    hidden = len(output) - max_length
    return f"{output[:max_length]}... [truncated, {hidden} more chars]"
