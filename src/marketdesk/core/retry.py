"""Exponential backoff for outbound provider calls, built on tenacity."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from functools import wraps
from typing import ParamSpec, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from marketdesk.core.logging import get_logger

logger = get_logger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


@dataclass
class RetryConfig:
    """Configuration for retry behavior.

    Attributes:
        max_attempts: Total attempts, the first call included.
        initial_delay: Seconds to wait before the first retry.
        max_delay: Upper bound for a single wait.
        jitter_max: Random seconds added on top of each wait.
        retry_exceptions: Only these exception types are retried.
    """

    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 60.0
    jitter_max: float = 1.0
    retry_exceptions: tuple[type[BaseException], ...] = (Exception,)

    def controller(self, label: str) -> AsyncRetrying:
        """Build a tenacity controller that logs each scheduled retry."""

        def before_sleep(state: RetryCallState) -> None:
            error = state.outcome.exception() if state.outcome else None
            logger.warning(
                "retry_scheduled",
                function=label,
                attempt=state.attempt_number,
                max_attempts=self.max_attempts,
                delay=round(state.next_action.sleep, 3) if state.next_action else 0.0,
                error=str(error),
            )

        return AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential_jitter(
                initial=self.initial_delay,
                max=self.max_delay,
                jitter=self.jitter_max,
            ),
            retry=retry_if_exception_type(self.retry_exceptions),
            before_sleep=before_sleep,
            reraise=True,
        )


def retry_with_backoff(
    config: RetryConfig | None = None,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Decorate a coroutine function with exponential backoff.

    Exceptions outside ``config.retry_exceptions`` propagate on the first
    failure. Once attempts run out the last exception is re-raised as is.
    """
    config = config or RetryConfig()

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            controller = config.controller(func.__name__)
            try:
                return await controller(func, *args, **kwargs)
            except config.retry_exceptions as exc:
                logger.error(
                    "retry_exhausted",
                    function=func.__name__,
                    attempts=controller.statistics.get("attempt_number", config.max_attempts),
                    last_exception=str(exc),
                )
                raise

        return wrapper

    return decorator
