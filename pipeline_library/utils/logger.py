"""
Logging utilities for Pipeline Library.

Every record carries the execution mode of the process in ``extra[mode]``, so
that logs collected from a cluster can tell SLAVE nodes from their master.
"""

import inspect
import logging
import sys

from loguru import logger as _logger

from ..settings import Settings, settings

DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>{extra[mode]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

# Standard library loggers whose records are routed into loguru
INTERCEPTED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi", "sqlalchemy")


class InterceptHandler(logging.Handler):
    """Forward standard library log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        level: str | int
        try:
            level = _logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip frames inside the logging module to report the real caller
        frame, depth = inspect.currentframe(), 0
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        _logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(config: Settings) -> None:
    """
    Configure loguru sinks from the service settings.

    Args:
        config: Settings providing level, format, file sink and execution mode
    """
    log_format = config.log_format or DEFAULT_FORMAT

    _logger.remove()
    _logger.configure(extra={"mode": config.execution_mode.upper()})

    _logger.add(
        sys.stderr,
        level=config.log_level,
        format=log_format,
        colorize=True,
        backtrace=True,
        diagnose=config.debug,
    )

    if config.log_to_file:
        log_path = config.get_log_dir() / "pipeline_library.log"
        log_path.parent.mkdir(parents=True, exist_ok=True)
        _logger.add(
            str(log_path),
            level=config.log_level,
            format=log_format,
            rotation=config.log_rotation,
            retention=config.log_retention,
            compression="zip",
            backtrace=True,
            diagnose=False,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for log_name in INTERCEPTED_LOGGERS:
        logging.getLogger(log_name).handlers = [InterceptHandler()]


setup_logging(settings)

logger = _logger
