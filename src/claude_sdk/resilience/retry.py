"""
Retry controller with exponential backoff and jitter.

Retries happen only at the attempt boundary: a failed attempt is discarded
whole and the operation is invoked again from scratch. Operations passed to
the controller must therefore be idempotent.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar, Union

from claude_sdk.errors import (
    ClaudeError,
    RateLimitError,
    ValidationError,
)
from claude_sdk.telemetry import get_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

T = TypeVar("T")

logger = get_logger("claude_sdk.resilience.retry")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry policy configuration.

    Attributes:
        max_attempts: Total attempts including the first (1 = no retries)
        initial_backoff: Delay before the second attempt, in seconds
        max_backoff: Upper bound for any single delay, in seconds
        multiplier: Growth factor between consecutive delays
        jitter: Random extra delay as a fraction of the computed delay
            (0.0 disables jitter)
        respect_retry_after: Use the server's retry hint when present
    """

    max_attempts: int = 3
    initial_backoff: float = 0.5
    max_backoff: float = 60.0
    multiplier: float = 2.0
    jitter: float = 0.1
    respect_retry_after: bool = True

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValidationError("max_attempts must be at least 1", field="max_attempts")
        if self.initial_backoff < 0 or self.max_backoff < 0:
            raise ValidationError("backoff values must not be negative", field="initial_backoff")
        if self.multiplier < 1.0:
            raise ValidationError("multiplier must be at least 1.0", field="multiplier")
        if self.jitter < 0:
            raise ValidationError("jitter must not be negative", field="jitter")

    @classmethod
    def no_retry(cls) -> RetryPolicy:
        """Create a policy that makes a single attempt."""
        return cls(max_attempts=1)


@dataclass(frozen=True)
class Success(Generic[T]):
    """The attempt produced a value."""

    value: T


@dataclass(frozen=True)
class RetryableFailure:
    """The attempt failed in a way a fresh attempt may get past.

    Attributes:
        error: The failure
        delay: Server-provided retry hint in seconds, if any
    """

    error: Exception
    delay: float | None = None


@dataclass(frozen=True)
class FatalFailure:
    """The attempt failed in a way retrying will not fix."""

    error: Exception


RetryOutcome = Union[Success[Any], RetryableFailure, FatalFailure]


@dataclass
class RetryResult:
    """Result of a retried operation.

    Attributes:
        success: Whether the operation succeeded
        value: The result value (if success)
        error: The last error (if failed)
        attempts: Number of attempts made
        total_delay: Total time spent waiting between attempts, in seconds
    """

    success: bool
    value: Any = None
    error: Exception | None = None
    attempts: int = 0
    total_delay: float = 0.0


class RetryController:
    """Runs an operation until it succeeds, fails fatally or runs out of attempts.

    Example:
        >>> controller = RetryController(RetryPolicy(max_attempts=5))
        >>> message = await controller.run(lambda: client.create_message(request))
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Initialize the controller.

        Args:
            policy: Retry policy (defaults to RetryPolicy())
            sleep: Coroutine used to wait between attempts
        """
        self._policy = policy or RetryPolicy()
        self._sleep = sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    def classify(self, error: Exception) -> RetryOutcome:
        """Decide whether an error is worth another attempt.

        Rate limits, server errors, transport failures, incomplete streams
        and retryable stream errors are retried. Client errors, protocol
        errors and anything raised outside the library are fatal.
        """
        if isinstance(error, ClaudeError) and error.retryable:
            hint = error.retry_after if isinstance(error, RateLimitError) else None
            return RetryableFailure(error, hint)
        return FatalFailure(error)

    def compute_delay(self, attempt: int, retry_after: float | None = None) -> float:
        """Delay before the attempt following ``attempt``.

        Args:
            attempt: 1-based number of the attempt that just failed
            retry_after: Server retry hint in seconds

        Returns:
            Delay in seconds
        """
        policy = self._policy
        if retry_after is not None and policy.respect_retry_after:
            return min(max(retry_after, 0.0), policy.max_backoff)

        base = min(
            policy.max_backoff,
            policy.initial_backoff * policy.multiplier ** (attempt - 1),
        )
        if policy.jitter > 0:
            return base + random.uniform(0, policy.jitter * base)
        return base

    async def execute(
        self,
        operation: Callable[[], Awaitable[Any]],
        on_retry: Callable[[int, Exception, float], None] | None = None,
    ) -> RetryResult:
        """Execute an operation with retry.

        The operation either returns a value, raises, or returns a
        :data:`RetryOutcome` to make the decision itself.

        Args:
            operation: Zero-argument async callable; invoked once per attempt
            on_retry: Called with (attempt, error, delay) before each wait

        Returns:
            RetryResult with success status and value/error
        """
        max_attempts = self._policy.max_attempts
        total_delay = 0.0
        attempt = 0

        while True:
            attempt += 1
            outcome = await self._attempt(operation)

            if isinstance(outcome, Success):
                if attempt > 1:
                    logger.info("Operation succeeded after retry", attempts=attempt)
                return RetryResult(
                    success=True,
                    value=outcome.value,
                    attempts=attempt,
                    total_delay=total_delay,
                )

            error = outcome.error
            _annotate(error, attempt, None)

            if isinstance(outcome, FatalFailure):
                return RetryResult(
                    success=False, error=error, attempts=attempt, total_delay=total_delay
                )

            if attempt >= max_attempts:
                logger.error(
                    "Retries exhausted",
                    attempts=attempt,
                    error_type=type(error).__name__,
                    error=str(error),
                )
                return RetryResult(
                    success=False, error=error, attempts=attempt, total_delay=total_delay
                )

            delay = self.compute_delay(attempt, outcome.delay)
            _annotate(error, attempt, delay)
            total_delay += delay

            logger.warning(
                "Retrying after failure",
                attempt=attempt,
                max_attempts=max_attempts,
                delay=round(delay, 3),
                error_type=type(error).__name__,
            )
            if on_retry:
                on_retry(attempt, error, delay)

            await self._sleep(delay)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        on_retry: Callable[[int, Exception, float], None] | None = None,
    ) -> T:
        """Execute an operation with retry, raising the last error on failure."""
        result = await self.execute(operation, on_retry)
        if result.success:
            return result.value
        raise result.error  # type: ignore[misc]

    async def _attempt(self, operation: Callable[[], Awaitable[Any]]) -> RetryOutcome:
        try:
            result = await operation()
        except Exception as e:
            return self.classify(e)
        if isinstance(result, (Success, RetryableFailure, FatalFailure)):
            return result
        return Success(result)


def _annotate(error: Exception, attempt: int, delay: float | None) -> None:
    if isinstance(error, ClaudeError):
        error.attempt = attempt
        error.retry_delay = delay


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    on_retry: Callable[[int, Exception, float], None] | None = None,
) -> T:
    """Execute an operation with retry, raising on failure.

    Args:
        operation: Async operation to execute
        policy: Retry policy
        on_retry: Optional callback called before each retry

    Returns:
        Operation result

    Raises:
        The last exception if all attempts fail
    """
    return await RetryController(policy).run(operation, on_retry)
