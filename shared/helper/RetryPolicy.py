"""Retry-with-backoff policy applied to blocking backend calls."""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

import httpx
from pydantic import BaseModel

from shared.exceptions.pipeline_errors import ClientRequestError

T = TypeVar("T")


def is_transient_error(exc: BaseException) -> bool:
    """Return True for failures worth retrying: transport problems and 5xx responses."""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, ClientRequestError):
        return exc.is_transient()
    return False


class RetryPolicy(BaseModel):
    """Per-stage retry configuration.

    Attributes:
        attempts:            Total number of tries, 1 disables retrying.
        backoff_seconds:     Delay before the first retry, doubled on each further retry.
        max_backoff_seconds: Upper bound for a single delay.
    """

    model_config = {"frozen": True}

    attempts: int = 1
    backoff_seconds: float = 0.5
    max_backoff_seconds: float = 8.0

    def get_delay(self, retry_number: int) -> float:
        """Returns the delay before the given retry (1-based)."""
        return min(self.backoff_seconds * (2 ** (retry_number - 1)), self.max_backoff_seconds)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        label: str,
        logger: logging.Logger | None = None,
        is_retryable: Callable[[BaseException], bool] = is_transient_error,
    ) -> T:
        """Run an async operation, retrying transient failures with exponential backoff.

        Args:
            operation: Zero-argument callable returning a fresh awaitable per try.
            label: Short description used in log lines (e.g. "embed POST /api/embed").
            logger: Logger for retry warnings.
            is_retryable: Decides whether a raised exception may be retried.

        Returns:
            The result of the first successful try.

        Raises:
            Exception: The last exception once all attempts are used up, or any
                non-retryable exception immediately.
        """
        attempts = max(1, int(self.attempts))
        for attempt in range(1, attempts + 1):
            try:
                return await operation()
            except Exception as exc:
                if attempt >= attempts or not is_retryable(exc):
                    raise
                delay = self.get_delay(attempt)
                if logger:
                    logger.warning(
                        "%s failed (attempt %d of %d): %s. Retrying in %.2fs.",
                        label, attempt, attempts, exc, delay,
                    )
                await asyncio.sleep(delay)
        raise RuntimeError("unreachable")
