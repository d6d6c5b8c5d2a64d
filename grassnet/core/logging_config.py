"""
Logging setup shared by the GrassNet package.

Modules log through children of the ``grassnet`` logger; the CLI calls
configure_logging() once to pick the level and where records go.
"""

import logging
import sys
from enum import IntEnum
from typing import Optional


class LogLevel(IntEnum):
    """Levels accepted by the CLI and the ``logging.level`` config key."""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


ROOT_LOGGER = "grassnet"

_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
_DATE_FORMAT = "%H:%M:%S"


def configure_logging(level: LogLevel = LogLevel.INFO, log_file: Optional[str] = None) -> None:
    """
    Route package log records to stdout and, optionally, a file.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        level: Records below this level are dropped
        log_file: Extra file sink, appended to
    """
    package_logger = logging.getLogger(ROOT_LOGGER)
    package_logger.setLevel(level)
    package_logger.handlers.clear()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    formatter = logging.Formatter(_FORMAT, _DATE_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)


def parse_level(name: str) -> LogLevel:
    """Level for a name such as "debug" or "WARNING"; unknown names give INFO."""
    try:
        return LogLevel[str(name).upper()]
    except KeyError:
        return LogLevel.INFO


def get_logger(name: str) -> logging.Logger:
    """Logger for one part of the package, e.g. get_logger("segmentation.engine")."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
