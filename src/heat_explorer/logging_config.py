"""
Logging setup for scripts driving the heat_explorer engine.

The engine logs session resets at INFO and instability, divergence and
degenerate pivots at WARNING, so INFO shows one line per reset and WARNING
only shows trouble.
"""

import logging
import sys
from typing import Optional, Union

PACKAGE_LOGGER = "heat_explorer"

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown logging level {level!r}")
    return resolved


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Send the engine's session log to stdout and optionally to a file.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        level: Level number or name ("debug", "WARNING", ...).
        log_file: Optional path; the file is overwritten.

    Returns:
        The 'heat_explorer' package logger.
    """
    level = _resolve_level(level)
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S")
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="w", encoding="utf-8"))
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.debug("Logging at %s%s", logging.getLevelName(level),
                 f" to {log_file}" if log_file else "")
    return logger
