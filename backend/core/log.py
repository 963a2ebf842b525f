"""Process-wide logging setup built on loguru.

Modules log through ``from loguru import logger``. ``setup_logging`` is called
once from ``create_app`` and also routes stdlib ``logging`` records (uvicorn,
httpx) into the same sinks.
"""
from __future__ import annotations

import logging
import sys

from loguru import logger

_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


class _InterceptHandler(logging.Handler):
    """Forward stdlib ``logging`` records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str = "INFO", *, log_file: str | None = None, intercept_stdlib: bool = True) -> None:
    logger.remove()
    logger.add(sys.stderr, format=_FORMAT, level=level.upper(), backtrace=True, diagnose=False)

    if log_file:
        logger.add(
            log_file,
            format=_FORMAT,
            level=level.upper(),
            rotation="10 MB",
            retention="7 days",
        )

    if intercept_stdlib:
        logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)

    logger.debug("Logging configured - level={}", level)
