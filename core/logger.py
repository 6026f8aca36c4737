from __future__ import annotations
import logging
import sys

from loguru import logger

from .config import config

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[component]}</cyan> | {message}"
)

_configured = False


class _StdlibBridge(logging.Handler):
    """Forwards records from stdlib loggers (httpx, httpcore) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.bind(component=record.name).opt(exception=record.exc_info).log(level, record.getMessage())


def setup_logging() -> None:
    """Install the console and file sinks once per process."""
    global _configured
    if _configured:
        return

    logger.remove()
    logger.add(
        sys.stdout,
        level=config.log_level,
        enqueue=config.environment != "test",
        backtrace=False,
        diagnose=False,
        colorize=True,
        format=CONSOLE_FORMAT,
    )

    # Test runs keep logs on stdout only
    if config.environment != "test":
        logger.add(
            config.log_file,
            rotation="20 MB",
            retention="14 days",
            compression="zip",
            level=config.log_level,
            enqueue=True,
            serialize=True,
        )

    # httpx logs every request at INFO; only surface it when debugging
    http_level = logging.DEBUG if config.log_level == "DEBUG" else logging.WARNING
    for name in ("httpx", "httpcore"):
        std_logger = logging.getLogger(name)
        std_logger.handlers = [_StdlibBridge()]
        std_logger.setLevel(http_level)
        std_logger.propagate = False

    _configured = True


def get_logger(name: str = "intake"):
    setup_logging()
    return logger.bind(component=name)
