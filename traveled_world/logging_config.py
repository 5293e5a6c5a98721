import logging
from pathlib import Path
from typing import Any

import structlog
from rich.logging import RichHandler

from .config import settings


def setup_logging(log_level: str | None = None) -> None:
    """Configure logging for the application.

    Args:
        log_level: Override the log level from settings
    """
    if log_level:
        level = getattr(logging, log_level.upper(), logging.INFO)
    else:
        level = logging.DEBUG if settings.debug else logging.INFO

    formatter = logging.Formatter(
        "%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    # Console handler with Rich for better formatting
    console_handler = RichHandler(
        rich_tracebacks=True,
        show_path=settings.debug,
        show_time=False,  # We handle time in formatter
    )
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # File handler for production or when explicitly requested
    if not settings.debug or settings.log_to_file:
        log_dir = Path("logs")
        log_dir.mkdir(exist_ok=True)

        file_handler = logging.FileHandler(
            log_dir / "traveled_world.log", encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    root_logger.setLevel(level)

    _configure_third_party_loggers()
    _configure_structlog(level)

    logger = get_logger(__name__)
    logger.info("Logging configured", level=logging.getLevelName(level))


def _configure_third_party_loggers() -> None:
    """Configure logging levels for third-party libraries."""
    # SQLAlchemy can be very verbose
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)

    # Uvicorn access logs (the request middleware logs requests)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)


def _add_app_context(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Tag every event with the app name and version."""
    event_dict.setdefault("app", settings.app_name)
    event_dict.setdefault("app_version", settings.version)
    return event_dict


def _configure_structlog(level: int = logging.INFO) -> None:
    """Configure structlog for structured logging."""
    # structlog writes directly, not through stdlib logging, so it does not
    # fight with the Rich handler above
    if settings.is_development:
        processors = [
            structlog.contextvars.merge_contextvars,
            _add_app_context,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=False),
        ]
    else:
        processors = [
            structlog.contextvars.merge_contextvars,
            _add_app_context,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.WriteLoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str):
    """Get a logger with the given name.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)
