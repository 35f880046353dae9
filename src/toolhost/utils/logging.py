"""Logging setup for toolhost processes.

Records go to stderr: stdout is reserved for stdio transports.
"""

import logging
import sys

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

_HANDLER_NAME = "toolhost-stderr"


def configure_logging(level: str = "INFO", debug: bool = False) -> logging.Logger:
    """Attach a stderr handler to the ``toolhost`` logger.

    Only the package logger is touched, so host applications keep control of
    the root logger. Calling again replaces the handler instead of adding one.

    Args:
        level: Level name (case-insensitive); unknown names fall back to INFO
        debug: Force DEBUG regardless of ``level``

    Returns:
        The configured ``toolhost`` logger
    """
    log_level = logging.DEBUG if debug else LOG_LEVELS.get(level.upper(), logging.INFO)

    package_logger = logging.getLogger("toolhost")
    for handler in list(package_logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            package_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(handler)
    package_logger.setLevel(log_level)
    return package_logger
