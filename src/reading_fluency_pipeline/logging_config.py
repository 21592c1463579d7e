"""
Structured logging configuration for the reading fluency pipeline.
"""

import sys
import logging
import structlog
from structlog.stdlib import LoggerFactory

from .config import settings


def setup_logging() -> None:
    """Configure structured logging for the application."""

    # Ensure logs directory exists
    settings.logs_dir.mkdir(parents=True, exist_ok=True)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if settings.log_format == "json"
            else structlog.dev.ConsoleRenderer(),
        ],
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, settings.log_level.upper()),
    )

    root_logger = logging.getLogger()

    # Add file handlers for persistent logging (once, even if re-imported)
    existing = {getattr(h, "baseFilename", None) for h in root_logger.handlers}

    pipeline_log = settings.logs_dir / "pipeline.log"
    if str(pipeline_log.resolve()) not in existing:
        file_handler = logging.FileHandler(pipeline_log, encoding="utf-8")
        file_handler.setLevel(logging.INFO)
        root_logger.addHandler(file_handler)

    error_log = settings.logs_dir / "errors.log"
    if str(error_log.resolve()) not in existing:
        error_handler = logging.FileHandler(error_log, encoding="utf-8")
        error_handler.setLevel(logging.ERROR)
        root_logger.addHandler(error_handler)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


class LoggerMixin:
    """Mixin class to add logging capabilities to other classes."""

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        """Get a logger instance for this class."""
        return get_logger(self.__class__.__name__)


# Setup logging on import
setup_logging()
