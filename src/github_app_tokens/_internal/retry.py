"""Bounded retry loop with per-attempt failure classification.

Each attempt of a network operation is turned into one of four outcomes:

- ``Success``: the operation returned a value.
- ``Retryable``: the transport failed (connection refused, reset, timeout);
  sleep and try again.
- ``TerminalEmpty``: GitHub answered 404; stop and report "not found".
- ``Fatal``: anything else; stop and raise.

Only after the loop has produced a ``Success`` does the caller touch any
cache, so a fatal error never leaves a partial write behind.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar, Union

import anyio
import httpx

from .._errors import AuthorityError, RetryExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_RETRY_DELAY = 1.0
DEFAULT_MAX_DELAY = 30.0


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T


@dataclass(frozen=True)
class Retryable:
    cause: BaseException


@dataclass(frozen=True)
class TerminalEmpty:
    pass


@dataclass(frozen=True)
class Fatal:
    cause: BaseException


Outcome = Union[Success[T], Retryable, TerminalEmpty, Fatal]

# Connectivity failures; misconfigured URLs (e.g. a missing scheme) are not retried
RETRYABLE_ERRORS = (httpx.NetworkError, httpx.TimeoutException, httpx.RemoteProtocolError)


def classify(operation: str, error: BaseException) -> Retryable | TerminalEmpty | Fatal:
    """Map an exception raised by an attempt to its retry outcome."""
    if isinstance(error, RETRYABLE_ERRORS):
        return Retryable(error)
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        if status == 404:
            return TerminalEmpty()
        return Fatal(
            AuthorityError(
                f"GitHub API error during {operation}: {error.response.reason_phrase}",
                operation=operation,
                status_code=status,
            )
        )
    return Fatal(error)


@dataclass
class RetryPolicy:
    """Retry settings for calls to GitHub.

    Attributes:
        max_attempts: Total attempts, including the first one.
        retry_delay: Delay before the second attempt; doubled after each
            further failure.
        max_delay: Upper bound for a single delay.
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    retry_delay: float = DEFAULT_RETRY_DELAY
    max_delay: float = DEFAULT_MAX_DELAY

    def delay_for(self, attempt: int) -> float:
        """Delay after the given (zero-based) failed attempt."""
        return min(self.retry_delay * (2**attempt), self.max_delay)

    async def attempt(
        self, operation: str, func: Callable[[], Awaitable[T]]
    ) -> Outcome[T]:
        """Run one attempt and classify how it ended."""
        try:
            return Success(await func())
        except Exception as e:
            return classify(operation, e)

    async def run(self, operation: str, func: Callable[[], Awaitable[T]]) -> T | None:
        """Run ``func`` until it succeeds, reports 404 or fails fatally.

        Returns:
            The value of the first successful attempt, or None when GitHub
            reported 404.

        Raises:
            AuthorityError: On a non-retryable failure.
            RetryExhaustedError: If every attempt failed at the transport level.
        """
        last_error: BaseException | None = None
        for attempt in range(self.max_attempts):
            outcome = await self.attempt(operation, func)

            if isinstance(outcome, Success):
                if attempt > 0:
                    logger.debug(f"{operation} succeeded on attempt {attempt + 1}")
                return outcome.value
            if isinstance(outcome, TerminalEmpty):
                logger.debug(f"{operation}: not found")
                return None
            if isinstance(outcome, Fatal):
                raise outcome.cause

            last_error = outcome.cause
            if attempt < self.max_attempts - 1:
                delay = self.delay_for(attempt)
                logger.warning(
                    f"Error connecting to GitHub during {operation} "
                    f"(attempt {attempt + 1}/{self.max_attempts}), "
                    f"retrying in {delay}s: {last_error!r}"
                )
                await anyio.sleep(delay)

        raise RetryExhaustedError(
            f"{operation} failed after {self.max_attempts} attempts",
            operation=operation,
            attempts=self.max_attempts,
            last_error=last_error,
        )
