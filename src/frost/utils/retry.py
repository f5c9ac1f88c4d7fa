"""Retry utilities for AWS API calls."""

from collections.abc import Callable
from typing import Any, TypeVar

from botocore.exceptions import ClientError
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from frost.utils.logging import get_logger

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

THROTTLING_ERROR_CODES = frozenset(
    {
        "Throttling",
        "ThrottlingException",
        "ThrottledException",
        "RequestLimitExceeded",
        "TooManyRequestsException",
        "RequestThrottledException",
    }
)


def is_throttling_error(error: BaseException) -> bool:
    """Return True when a boto error is an API rate-limit rejection."""
    if not isinstance(error, ClientError):
        return False
    return error.response.get("Error", {}).get("Code") in THROTTLING_ERROR_CODES


def retry_on_exception(
    predicate: Callable[[BaseException], bool] = is_throttling_error,
    max_attempts: int = 3,
    min_wait: float = 1,
    max_wait: float = 10,
) -> Callable[[F], F]:
    """Decorator to retry a function while ``predicate`` accepts the raised error.

    Args:
        predicate: Decides whether an exception is worth another attempt
        max_attempts: Attempts before the error is re-raised
        min_wait: Shortest backoff (seconds)
        max_wait: Longest backoff (seconds)

    Returns:
        Retrying decorator
    """

    def log_retry(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "aws_call_retrying",
            call=getattr(retry_state.fn, "__qualname__", None),
            attempt=retry_state.attempt_number,
            of=max_attempts,
            error=str(error),
        )

    return retry(
        retry=retry_if_exception(predicate),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        before_sleep=log_retry,
        reraise=True,
    )
