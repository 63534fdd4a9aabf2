"""
Utility functions for logging and describing exceptions raised while talking to the gateway.
"""

import logging


def _safe_str(obj) -> str:
    """
    Safely convert an object to string, handling cases where __str__ or __repr__ might fail.
    """
    try:
        return str(obj)
    except Exception:
        try:
            return repr(obj)
        except Exception:
            return f"<{type(obj).__name__} object (string conversion failed)>"


def format_exception_message(exception: Exception) -> str:
    """
    Describe an exception in a single line that is never empty.

    Transport errors raised by httpx frequently carry an empty message
    (e.g. ``ReadTimeout('')``), in which case the exception type and,
    when available, the request URL are used instead.

    Args:
        exception: The exception to describe

    Returns:
        A non-empty human readable message
    """
    if exception is None:
        return "None"

    message = _safe_str(exception).strip()
    if message:
        return message

    name = type(exception).__name__
    request = None
    try:
        request = getattr(exception, "request", None)
    except Exception:
        # httpx raises RuntimeError when no request is attached
        request = None
    if request is not None:
        return f"{name} while requesting {request.method} {request.url}"
    return name


def log_exception_with_details(
    logger: logging.Logger,
    prefix: str,
    exception: Exception,
    level: int = logging.ERROR,
) -> None:
    """
    Log an exception with its formatted message and stack trace.
    This function never raises, even for broken exception objects.

    Args:
        logger: The logger instance to use
        prefix: Prefix for the log message (e.g., "[Proxy]", "[Dashboard]")
        exception: The exception to log
        level: The logging level to use (default: ERROR)
    """
    try:
        message = f"{prefix} {type(exception).__name__}: {format_exception_message(exception)}"
        logger.log(level, message, exc_info=exception)
    except Exception:
        try:
            logger.log(level, f"{prefix} Exception (logging failed)")
        except Exception:
            pass
