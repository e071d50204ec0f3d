"""
Logger Setup
-----------
Centralized logging configuration using loguru.
Console output is colorized; production runs also write rotating log files.
"""

import sys
from loguru import logger
from app.core.config_manager import settings


CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
    "{name}:{function}:{line} | {message}"
)


def configure_logger(write_files: bool = None) -> None:
    """
    Configure loguru logger with appropriate settings.

    Args:
        write_files: Force file logging on or off. Defaults to on outside debug mode.
    """
    logger.remove()

    logger.add(
        sys.stdout,
        format=CONSOLE_FORMAT,
        level=settings.log_level,
        colorize=True,
        backtrace=True,
        # Variable values in tracebacks can include credentials
        diagnose=False,
    )

    if write_files is None:
        write_files = not settings.debug

    if write_files:
        logger.add(
            "logs/tomevault_{time:YYYY-MM-DD}.log",
            rotation="100 MB",
            retention="14 days",
            level=settings.log_level,
            format=FILE_FORMAT,
            backtrace=True,
            diagnose=False,
        )

    logger.info(f"Logger configured with level: {settings.log_level}")


# Configure logger on import
configure_logger()
