"""
Logging for the HTML builder.

Everything logs under the "html_builder" logger: stage modules take a child
via get_module_logger(), and setup_logger() owns the handlers and the level.
"""

import logging
import sys
from typing import Optional, Union

PACKAGE_LOGGER = "html_builder"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _resolve_level(level: Union[int, str]) -> int:
    # Unknown names fall back to INFO
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logger(
    name: str = PACKAGE_LOGGER,
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Configure the logger `name` and return it.

    The first call attaches a stdout handler (plus a file handler when
    `log_file` is given). Later calls only move the logger and its handlers
    to `level`, so the engine and the CLI can both set it.

    Args:
        name: Logger name
        level: A logging level number, or a name such as "DEBUG"
        log_file: Optional path to also write records to
    """
    level = _resolve_level(level)
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if not logger.handlers:
        handlers = [logging.StreamHandler(sys.stdout)]
        if log_file:
            handlers.append(logging.FileHandler(log_file))

        formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
        for handler in handlers:
            handler.setFormatter(formatter)
            logger.addHandler(handler)

    for handler in logger.handlers:
        handler.setLevel(level)
    return logger


logger = setup_logger()


def get_module_logger(module_name: str) -> logging.Logger:
    """Child logger such as "html_builder.tree_builder"; records reach the package handlers."""
    return logging.getLogger(f"{PACKAGE_LOGGER}.{module_name}")
