"""Loguru setup for DocInsight.

One console sink plus, when a log directory is configured, rotating file sinks
for plain text, serialized JSON, per-operation records and errors. Records
carry ``session_id`` and ``operation`` in ``extra`` when bound through
:func:`get_session_logger`.
"""

import inspect
import sys
import time
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Optional
from loguru import logger


CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[session_id]}</cyan> | <cyan>{name}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time} | {level} | {extra[session_id]} | {name}:{function}:{line} | {message}"
OPERATION_FORMAT = "{time} | {level} | {extra[session_id]} | {extra[operation]} | {message}"

# records logged outside a session still need the field for the formats above
logger.configure(extra={"session_id": "-"})
logger.remove()
logger.add(sys.stderr, level="WARNING", format=CONSOLE_FORMAT)


def setup_logging(
    log_dir: Optional[str] = "logs",
    level: str = "INFO",
    rotation: str = "50 MB",
    retention: str = "14 days",
    compression: str = "zip"
) -> None:
    """Install the DocInsight sinks, replacing any existing ones.

    Args:
        log_dir: Directory for log files; None keeps logging on the console only
        level: Minimum level for the console and the general file sinks
        rotation: Size or age at which a file sink rotates
        retention: How long rotated files are kept
        compression: Archive format for rotated files
    """
    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)

    if log_dir is None:
        return

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    rolling = {"rotation": rotation, "retention": retention, "compression": compression}

    logger.add(log_path / "docinsight_{time}.log", format=FILE_FORMAT, level=level, **rolling)
    logger.add(log_path / "docinsight_json_{time}.log", level=level, serialize=True, **rolling)
    logger.add(
        log_path / "operations_{time}.log",
        format=OPERATION_FORMAT,
        level="INFO",
        filter=lambda record: "operation" in record["extra"],
        **rolling
    )
    logger.add(log_path / "errors_{time}.log", format=FILE_FORMAT, level="ERROR", **rolling)

    logger.info("Logging configured", log_dir=str(log_path), level=level)


def get_session_logger(session_id: str, operation: Optional[str] = None):
    """Logger bound to one session, and to an operation when given.

    Args:
        session_id: Session identifier
        operation: Operation name (summarize, ask, define, file, ...)

    Returns:
        Bound loguru logger
    """
    if operation:
        return logger.bind(session_id=session_id, operation=operation)
    return logger.bind(session_id=session_id)


def log_agent_execution(agent_name: str) -> Callable:
    """Log start, duration and failure of an agent coroutine.

    The session id comes from the ``session_id`` keyword argument, falling back
    to a ``session_id`` attribute on the agent.
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            owner = args[0] if args else None
            session_id = kwargs.get("session_id") or getattr(owner, "session_id", None) or "-"
            bound = get_session_logger(session_id, agent_name)
            started = time.perf_counter()
            bound.info("Model call started", call=func.__qualname__)

            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                bound.error(
                    "Model call failed",
                    call=func.__qualname__,
                    error=str(e),
                    error_type=type(e).__name__
                )
                raise

            bound.info(
                "Model call finished",
                call=func.__qualname__,
                duration_seconds=round(time.perf_counter() - started, 3)
            )
            return result

        return wrapper
    return decorator


def log_tool_execution(tool_name: str) -> Callable:
    """Debug-log entry and exit of a tool call and log its failures.

    Works for plain functions and coroutine functions.
    """
    def report_failure(func: Callable, error: Exception) -> None:
        logger.error(
            "Tool failed",
            tool=tool_name,
            call=func.__qualname__,
            error=str(error),
            error_type=type(error).__name__
        )

    def decorator(func: Callable) -> Callable:
        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs) -> Any:
                logger.debug("Tool started", tool=tool_name)
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    report_failure(func, e)
                    raise
                logger.debug("Tool finished", tool=tool_name)
                return result
            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            logger.debug("Tool started", tool=tool_name)
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                report_failure(func, e)
                raise
            logger.debug("Tool finished", tool=tool_name)
            return result
        return wrapper
    return decorator
