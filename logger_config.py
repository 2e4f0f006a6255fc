"""Centralized logging configuration."""

import sys

from loguru import logger

from config import LOG_LEVEL

log_format = " | ".join(
    (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</>",
        "<lvl>{level:<8}</>",
        "<c>{name}:{function}:{line}</>",
        "{message}",
    )
)

# Replace loguru's default sink so every module shares one format
logger.remove()
logger.add(sys.stderr, format=log_format, level=LOG_LEVEL)
