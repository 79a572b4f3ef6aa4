"""Error taxonomy, retry policy and error-conversion decorators.

Every failure the session can report is a :class:`DocInsightError`. Model
failures split into :class:`RequestFailed` (transport or service error, with
an optional HTTP status) and :class:`EmptyResponse` (no usable text).
"""

import asyncio
import inspect
import time
from functools import wraps
from typing import Any, Callable, List, Optional, Type
from loguru import logger


TRANSIENT_STATUS_CODES = [429, 500, 503, 504]


class DocInsightError(Exception):
    """Base exception for all DocInsight errors."""
    pass


class InputInvalid(DocInsightError):
    """An operation was requested without its precondition."""
    pass


class OperationInProgress(DocInsightError):
    """An operation kind was started while one of the same kind is in flight."""
    pass


class ConfigurationError(DocInsightError):
    """Required configuration is missing or malformed."""
    pass


class FileIntakeFailure(DocInsightError):
    """A selected file could not be accepted or read."""
    pass


class LLMError(DocInsightError):
    """The language model call did not produce a usable answer."""
    pass


class RequestFailed(LLMError):
    """The transport or the service reported an error."""

    def __init__(self, message: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class EmptyResponse(LLMError):
    """The service answered without usable text."""
    pass


def user_message(error: BaseException, fallback: str) -> str:
    """Message shown to the user for a caught failure.

    Args:
        error: The caught exception
        fallback: Generic text for errors that carry no message

    Returns:
        The error's own message when it has one, else the fallback
    """
    message = getattr(error, "message", None) or str(error)
    return message.strip() or fallback


class RetryConfig:
    """Exponential backoff policy for transient model failures."""

    def __init__(
        self,
        attempts: int = 3,
        exp_base: int = 2,
        initial_delay: float = 1.0,
        max_delay: float = 30.0,
        http_status_codes: Optional[List[int]] = None
    ):
        """
        Args:
            attempts: Total number of calls, the first one included
            exp_base: Growth factor of the delay between calls
            initial_delay: Seconds to wait before the first retry
            max_delay: Upper bound for any single wait
            http_status_codes: Status codes of RequestFailed worth retrying
        """
        self.attempts = max(1, attempts)
        self.exp_base = exp_base
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.http_status_codes = list(http_status_codes or TRANSIENT_STATUS_CODES)

    def calculate_delay(self, attempt: int) -> float:
        """Seconds to wait after the zero-based ``attempt`` failed."""
        return min(self.initial_delay * self.exp_base ** attempt, self.max_delay)

    def should_retry(self, error: BaseException) -> bool:
        """Only RequestFailed with a transient status code is retried."""
        return isinstance(error, RequestFailed) and error.status_code in self.http_status_codes


GEMINI_RETRY_CONFIG = RetryConfig()


def retry_with_backoff(
    config: Optional[RetryConfig] = None,
    config_attr: Optional[str] = None
) -> Callable:
    """Retry a function or coroutine function on transient failures.

    Args:
        config: Policy to apply (GEMINI_RETRY_CONFIG when omitted)
        config_attr: Name of an attribute on the bound instance holding the
            policy; read at call time and preferred over ``config``

    Returns:
        Decorator
    """
    def policy_for(args) -> RetryConfig:
        if config_attr and args:
            own = getattr(args[0], config_attr, None)
            if own is not None:
                return own
        return config or GEMINI_RETRY_CONFIG

    def next_delay(policy: RetryConfig, attempt: int, func: Callable, error: Exception) -> Optional[float]:
        """Delay before the next attempt, or None when the error should propagate."""
        if not policy.should_retry(error):
            return None

        context = {"call": func.__qualname__, "error": str(error), "status_code": error.status_code}
        if attempt + 1 >= policy.attempts:
            logger.error("Giving up after {} attempts", policy.attempts, **context)
            return None

        delay = policy.calculate_delay(attempt)
        logger.warning(
            "Transient failure on attempt {}/{}, retrying in {}s",
            attempt + 1, policy.attempts, delay,
            **context
        )
        return delay

    def decorator(func: Callable) -> Callable:
        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs) -> Any:
                policy = policy_for(args)
                attempt = 0
                while True:
                    try:
                        return await func(*args, **kwargs)
                    except Exception as e:
                        delay = next_delay(policy, attempt, func, e)
                        if delay is None:
                            raise
                    await asyncio.sleep(delay)
                    attempt += 1
            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            policy = policy_for(args)
            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    delay = next_delay(policy, attempt, func, e)
                    if delay is None:
                        raise
                time.sleep(delay)
                attempt += 1
        return wrapper
    return decorator


def handle_errors(
    error_type: Type[DocInsightError],
    default_return: Any = None,
    reraise: bool = True
) -> Callable:
    """Convert foreign exceptions raised by a function into ``error_type``.

    DocInsight errors pass through untouched.

    Args:
        error_type: Domain exception raised in place of foreign ones
        default_return: Value returned instead when ``reraise`` is False
        reraise: Whether to raise ``error_type`` or swallow and return

    Returns:
        Decorator
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            try:
                return func(*args, **kwargs)
            except DocInsightError:
                raise
            except Exception as e:
                logger.error(
                    "Unexpected error in {}",
                    func.__qualname__,
                    error=str(e),
                    error_type=type(e).__name__
                )
                if not reraise:
                    return default_return
                raise error_type(f"Error in {func.__name__}: {e}") from e

        return wrapper
    return decorator
