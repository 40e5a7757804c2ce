"""
Logging setup for the ``marvin`` logger hierarchy.

Library modules only create module loggers (``logging.getLogger(__name__)``)
and never attach handlers. Whatever embeds the package (a CLI, an agent
server, a test harness) calls ``configure_logging`` once.

Usage:
    from marvin.logging_config import configure_logging

    configure_logging(log_level="DEBUG")

    # One JSON object per line, for log shippers
    configure_logging(structured=True, log_to_file=True, marvin_dir=project.marvin_dir)

Level and file location fall back to ``settings`` (``MARVIN_LOG_LEVEL``,
``MARVIN_LOG_DIR``).
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from .config import settings

LOGGER_NAME = "marvin"

PLAIN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
PLAIN_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Attributes every LogRecord has; anything else came in through ``extra=``
_RECORD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """Render each record as a single JSON object.

    Values passed through ``extra=`` (for example ``doc_id``) become
    top-level keys.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            {key: value for key, value in record.__dict__.items() if key not in _RECORD_ATTRS}
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def get_default_log_dir(marvin_dir: Optional[Path] = None) -> Path:
    """``MARVIN_LOG_DIR`` when set, otherwise ``<marvin_dir>/logs`` (cwd if omitted)."""
    # Environment first: settings were read at import time
    override = os.environ.get("MARVIN_LOG_DIR") or settings.log_dir
    if override:
        return Path(override)
    return Path(marvin_dir if marvin_dir is not None else Path.cwd()) / "logs"


def _attach(logger: logging.Logger, handler: logging.Handler, level: int, formatter: logging.Formatter) -> None:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def configure_logging(
    log_level: Optional[str] = None,
    log_dir: Optional[Path] = None,
    marvin_dir: Optional[Path] = None,
    log_to_console: bool = True,
    log_to_file: bool = False,
    structured: bool = False,
) -> logging.Logger:
    """
    Attach handlers to the ``marvin`` logger, replacing any from an earlier call.

    Args:
        log_level: Level name; defaults to ``settings.log_level``
        log_dir: Directory for the log file; defaults to ``get_default_log_dir``
        marvin_dir: Project directory the default log dir is derived from
        log_to_console: Write records to stderr
        log_to_file: Also write every record (DEBUG and up) to a timestamped file
        structured: JSON lines instead of the plain text format

    Returns:
        The ``marvin`` logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    level_name = (log_level or settings.log_level).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO
    logger.setLevel(level)

    formatter = (
        StructuredFormatter()
        if structured
        else logging.Formatter(fmt=PLAIN_FORMAT, datefmt=PLAIN_DATEFMT)
    )

    if log_to_console:
        _attach(logger, logging.StreamHandler(sys.stderr), level, formatter)

    if log_to_file:
        directory = Path(log_dir) if log_dir is not None else get_default_log_dir(marvin_dir)
        directory.mkdir(parents=True, exist_ok=True)
        log_path = directory / f"marvin_{datetime.now():%Y%m%d_%H%M%S}.log"
        _attach(logger, logging.FileHandler(log_path, encoding="utf-8"), logging.DEBUG, formatter)
        logger.debug(f"Writing log file {log_path}")

    return logger
