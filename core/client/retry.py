"""Exponential backoff retry helper."""

from __future__ import annotations

import asyncio
import random
from typing import TYPE_CHECKING, Final, TypeVar

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Awaitable, Callable

__all__: list[str] = ["RetryExhaustedError", "backoff_delay", "with_retry"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS: Final[int] = 3
DEFAULT_BASE_DELAY: Final[float] = 1.0
DEFAULT_MAX_JITTER: Final[float] = 1.0


class RetryExhaustedError(Exception):
    """Every attempt of a retried operation failed.

    Attributes:
        attempts (int): Number of attempts made.
        last_error (BaseException): Error raised by the final attempt.
    """

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        self.attempts: int = attempts
        self.last_error: BaseException = last_error
        super().__init__(f"Operation failed after {attempts} attempt(s): {last_error}")


def backoff_delay(attempt: int, base_delay: float, max_jitter: float) -> float:
    """Delay before the next attempt: ``base * 2^(attempt-1) + uniform(0, max_jitter)``."""
    return base_delay * (2 ** (attempt - 1)) + random.uniform(0, max_jitter)  # noqa: S311


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_jitter: float = DEFAULT_MAX_JITTER,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
) -> T:
    """Run an awaitable factory, retrying failures with exponential backoff plus jitter.

    Errors not listed in ``retry_on`` propagate immediately.

    Args:
        operation (Callable[[], Awaitable[T]]): Factory creating a fresh awaitable per attempt.
        max_attempts (int): Total attempts, including the first one.
        base_delay (float): Base delay in seconds.
        max_jitter (float): Upper bound of the random jitter in seconds.
        retry_on (tuple[type[BaseException], ...]): Error types that trigger a retry.

    Returns:
        T: The operation's result.

    Raises:
        RetryExhaustedError: If every attempt failed with a retryable error.
    """
    attempts: int = max(1, max_attempts)
    last_error: BaseException | None = None

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except retry_on as err:
            last_error = err
            if attempt == attempts:
                break
            delay: float = backoff_delay(attempt, base_delay, max_jitter)
            logger.debug("Attempt %d/%d failed (%s); retrying in %.2fs", attempt, attempts, err, delay)
            await asyncio.sleep(delay)

    logger.warning("Giving up after %d attempt(s): %s", attempts, last_error)
    raise RetryExhaustedError(attempts, last_error)  # type: ignore[arg-type]
