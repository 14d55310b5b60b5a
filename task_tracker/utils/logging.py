"""Logging configuration for the task tracker."""

import logging
import logging.handlers
import sys
import time

from fastapi import Request

from ..config import Settings


class ColoredFormatter(logging.Formatter):
    """Custom formatter with color support for console output."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'        # Reset
    }

    def format(self, record):
        """Format log record with a colored level name.

        The record is shared with the file handlers, so the original level
        name is restored after formatting.
        """
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def setup_logging(settings: Settings) -> None:
    """Setup logging for the application.

    Args:
        settings: Application settings containing logging configuration
    """
    level = getattr(logging, settings.log_level.upper())

    log_dir = settings.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Drop handlers from an earlier setup_logging call
    for handler in list(root_logger.handlers):
        if getattr(handler, "_task_tracker", False):
            root_logger.removeHandler(handler)
            handler.close()

    # Console handler with colors
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(ColoredFormatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))

    # File handler for all logs
    file_handler = logging.handlers.RotatingFileHandler(
        filename=log_dir / "app.log",
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    file_handler.setLevel(logging.DEBUG)  # Always log everything to file
    file_handler.setFormatter(logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))

    # Error file handler for errors and above
    error_handler = logging.handlers.RotatingFileHandler(
        filename=log_dir / "error.log",
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))

    for handler in (console_handler, file_handler, error_handler):
        handler._task_tracker = True
        root_logger.addHandler(handler)

    configure_module_loggers(settings)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured with level: {settings.log_level.upper()}")
    logger.info(f"Log files will be written to: {log_dir.absolute()}")


def configure_module_loggers(settings: Settings) -> None:
    """Configure logging levels for specific modules.

    Args:
        settings: Application settings
    """
    logging.getLogger('task_tracker').setLevel(getattr(logging, settings.log_level.upper()))

    # Third-party library loggers
    third_party_loggers = {
        'uvicorn': logging.INFO,
        'uvicorn.access': logging.WARNING,
        'fastapi': logging.INFO,
        'httpx': logging.WARNING,
    }

    for logger_name, level in third_party_loggers.items():
        logging.getLogger(logger_name).setLevel(level)

    # Suppress access logs in production
    if settings.environment == "production":
        for logger_name in ('uvicorn.access', 'httpx'):
            logging.getLogger(logger_name).setLevel(logging.ERROR)


async def log_requests(request: Request, call_next):
    """Middleware to log HTTP requests and responses."""
    logger = logging.getLogger("task_tracker.middleware.requests")

    start_time = time.time()
    logger.info(
        f"Request started: {request.method} {request.url} "
        f"from {request.client.host if request.client else 'unknown'}"
    )

    response = await call_next(request)

    process_time = time.time() - start_time
    logger.info(
        f"Request completed: {request.method} {request.url} "
        f"-> {response.status_code} in {process_time:.3f}s"
    )

    return response
