import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import Request


def log_store_operation(
    operation: str,
    entity: str,
    success: bool = True,
    logger_name: str = "store",
    **kwargs: Any,
) -> None:
    """Log store commands with consistent structure.

    Args:
        operation: Command name (add, update, delete, undo, import, ...)
        entity: Entity kind the command touched (city, trip, preferences, history)
        success: Whether the command took effect
        logger_name: Name of the logger to use
        **kwargs: Additional context data
    """
    logger = logging.getLogger(logger_name)

    log_data = {"operation": operation, "entity": entity, "success": success, **kwargs}

    level = logging.INFO if success else logging.WARNING
    status = "succeeded" if success else "rejected"

    logger.log(level, f"Store {operation} on {entity} {status}", extra=log_data)


def log_api_request(
    request: Request,
    response_status: int,
    process_time_ms: float | None = None,
    logger_name: str = "api",
) -> None:
    """Log API requests with consistent format.

    Args:
        request: FastAPI request object
        response_status: HTTP response status code
        process_time_ms: Request processing time in milliseconds
        logger_name: Name of the logger to use
    """
    logger = logging.getLogger(logger_name)

    log_data = {
        "method": request.method,
        "path": request.url.path,
        "status_code": response_status,
        "client_ip": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent", "Unknown")[:100],
    }

    if process_time_ms is not None:
        log_data["process_time_ms"] = str(round(process_time_ms, 2))

    if response_status >= 500:
        log_level = logging.ERROR
    elif response_status >= 400:
        log_level = logging.WARNING
    else:
        log_level = logging.INFO

    message = f"{request.method} {request.url.path} - {response_status}"
    if process_time_ms is not None:
        message += f" ({process_time_ms:.1f}ms)"

    logger.log(log_level, message, extra=log_data)


def log_system_info(hostname: str, debug_mode: bool, city_count: int) -> None:
    """Log system startup information.

    Args:
        hostname: Server hostname
        debug_mode: Whether debug mode is enabled
        city_count: Number of cities restored from persistence
    """
    logger = logging.getLogger("system")

    logger.info(
        "Application startup",
        extra={
            "hostname": hostname,
            "debug_mode": debug_mode,
            "city_count": city_count,
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )
