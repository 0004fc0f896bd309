"""Loguru logging setup."""

import os
import sys
from pathlib import Path

from loguru import logger

LOG_FORMAT = "<level>{time:YYYY-MM-DD HH:mm:ss} | {level: <7} | {name}:{function}:{line} | {message}</level>"


def setup_logging(level: str | None = None, log_file: Path | str | None = None) -> None:
    """
    Replace loguru's default handler with eqmind's sinks.

    Level comes from the argument, then EQMIND_LOG_LEVEL, then LOG_LEVEL,
    defaulting to INFO. ``log_file`` adds a rotating file sink at DEBUG.
    """
    if level is None:
        level = os.environ.get("EQMIND_LOG_LEVEL") or os.environ.get("LOG_LEVEL", "INFO")
    level = level.upper()

    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT, level=level, colorize=True, backtrace=True, diagnose=False)

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(path, level="DEBUG", rotation="10 MB", retention=5, enqueue=True)
