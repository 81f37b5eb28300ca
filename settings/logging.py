"""Logging configuration."""

import sys

from loguru import logger

from settings import LOG_DIR, LOG_LEVEL, LOG_RETENTION, LOG_ROTATION


def setup_logging(level: str = LOG_LEVEL, to_file: bool = True):
    """Console sink at ``level``; optional DEBUG file sink under LOG_DIR.

    The sweep and recorder threads log too, so file writes are queued.
    """
    logger.remove()

    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <7}</level> | <cyan>{name}</cyan> | <level>{message}</level>",
        level=level.upper(),
        colorize=True,
    )

    if to_file:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        logger.add(
            LOG_DIR / "oecd_cache_{time:YYYY-MM-DD}.log",
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <7} | {thread.name} | {name}:{function}:{line} | {message}",
            level="DEBUG",
            rotation=LOG_ROTATION,
            retention=LOG_RETENTION,
            compression="gz",
            enqueue=True,
        )
        logger.debug("Logging to {} (rotation {}, retention {})", LOG_DIR, LOG_ROTATION, LOG_RETENTION)

    return logger
