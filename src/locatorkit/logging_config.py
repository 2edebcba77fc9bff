"""Logging configuration for applications embedding locatorkit."""

import logging
import sys
from pathlib import Path
from typing import Optional

from .config import Config

PACKAGE_LOGGER = "locatorkit"

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
    config: Optional[Config] = None,
) -> logging.Logger:
    """Attach handlers to the ``locatorkit`` logger.

    Only the package logger is touched; the application's root logger
    configuration is left alone. Calling this again replaces the handlers
    installed by the previous call.

    Args:
        level: Log level name; defaults to ``config.log_level``
        log_file: Optional log file path
        format_string: Optional custom format string
        config: Source of the default level; loaded from the environment if omitted

    Returns:
        The configured package logger
    """
    if level is None:
        level = (config or Config.from_env()).log_level

    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if getattr(handler, "_locatorkit", False):
            logger.removeHandler(handler)
            handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        handler._locatorkit = True  # marks handlers owned by setup_logging
        logger.addHandler(handler)

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return logger
