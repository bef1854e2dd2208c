import logging
import uuid
from typing import Any, Optional


def new_correlation_id() -> str:
    return uuid.uuid4().hex


def log_error(
    logger: logging.Logger,
    message: str,
    *,
    at_function: Optional[str] = None,
    data: Any = None,
    exc_info: Any = None,
) -> str:
    """Log an error and return its correlation id (used as error_id in Err results)."""
    error_id = new_correlation_id()
    where = f" at {at_function}" if at_function else ""
    logger.error(
        f"{message}{where} [error_id={error_id}]",
        extra={"error_id": error_id, "error_data": data},
        exc_info=exc_info,
    )
    return error_id
