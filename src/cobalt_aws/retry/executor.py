"""
Retry executor for asynchronous remote operations.

Drives an operation through a RetryPolicy until it succeeds or the policy
gives up. The executor is service-agnostic: anything that can be awaited
again from scratch on every attempt can be retried.

Usage:
    executor = RetryExecutor(RetryPolicy(RetryPolicyConfig(max_attempts=5)))
    body = await executor.execute(lambda: fetch(bucket, key), name="s3.get_object")

    # or with an Operation adapter
    response = await executor.run(AwsOperation(client, "get_object", Bucket=b, Key=k))
"""

import asyncio
import time
from typing import TYPE_CHECKING, Awaitable, Callable, Protocol, TypeVar

import structlog

from cobalt_aws.monitoring.metrics import retry_attempts_total, retry_exhausted_total
from cobalt_aws.retry.exceptions import RetryExhausted
from cobalt_aws.retry.metadata import RetryMetadata
from cobalt_aws.retry.policy import Retry, RetryPolicy, RetryPolicyConfig

if TYPE_CHECKING:
    from cobalt_aws.config import Settings

logger = structlog.get_logger(__name__)

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class Operation(Protocol[T_co]):
    """
    A re-invokable unit of remote work.

    ``attempt`` is called once per retry attempt and must be safe to call
    again after a failure (idempotent or otherwise re-invokable). Failures
    are signalled by raising, preferably TransientError or PermanentError.
    """

    async def attempt(self) -> T_co:
        ...


class RetryExecutor:
    """
    Runs operations with retry and backoff.

    Attributes:
        policy: Decision logic consulted after every failed attempt
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: "Settings") -> "RetryExecutor":
        """Build an executor using the retry settings."""
        return cls(RetryPolicy(RetryPolicyConfig.from_settings(settings)))

    async def run(self, operation: Operation[T]) -> T:
        """Execute an Operation adapter with retries."""
        name = getattr(operation, "name", type(operation).__name__)
        return await self.execute(operation.attempt, name=name)

    async def execute(
        self,
        operation_factory: Callable[[], Awaitable[T]],
        name: str | None = None,
    ) -> T:
        """
        Execute the operation until success or until the policy gives up.

        Args:
            operation_factory: Called fresh on every attempt, returns an awaitable
            name: Operation name used in log events

        Returns:
            Result of the first successful attempt

        Raises:
            RetryExhausted: The policy gave up; the terminal error is chained
        """
        result, _ = await self.execute_with_metadata(operation_factory, name=name)
        return result

    async def execute_with_metadata(
        self,
        operation_factory: Callable[[], Awaitable[T]],
        name: str | None = None,
    ) -> tuple[T, RetryMetadata]:
        """Same as ``execute`` but also returns the attempt history."""
        start = self._clock()
        attempt = 0
        delays: list[float] = []
        errors: list[dict] = []

        while True:
            attempt += 1
            try:
                result = await operation_factory()
            except Exception as exc:
                elapsed = self._clock() - start
                classification = "transient" if self.policy.is_transient(exc) else "permanent"
                errors.append(
                    {
                        "attempt": attempt,
                        "error_type": type(exc).__name__,
                        "message": str(exc),
                        "transient": classification == "transient",
                    }
                )

                decision = self.policy.decide(exc, attempt, elapsed)

                if isinstance(decision, Retry):
                    retry_attempts_total.labels(classification, "retry").inc()
                    logger.warning(
                        "Attempt failed, retrying",
                        operation=name,
                        attempt=attempt,
                        classification=classification,
                        error_type=type(exc).__name__,
                        error=str(exc),
                        delay=round(decision.delay, 3),
                    )
                    delays.append(decision.delay)
                    await self._sleep(decision.delay)
                    continue

                retry_attempts_total.labels(classification, "give_up").inc()
                retry_exhausted_total.labels(classification).inc()
                metadata = RetryMetadata(
                    total_attempts=attempt,
                    total_elapsed_ms=int(elapsed * 1000),
                    delays=tuple(delays),
                    errors=tuple(errors),
                    operation=name,
                )
                logger.error(
                    "Attempt failed, giving up",
                    operation=name,
                    attempt=attempt,
                    classification=classification,
                    error_type=type(exc).__name__,
                    error=str(exc),
                    elapsed_seconds=round(elapsed, 3),
                )
                raise RetryExhausted(
                    last_error=decision.terminal_error,
                    attempts=attempt,
                    elapsed=elapsed,
                    retry_metadata=metadata,
                ) from decision.terminal_error

            elapsed = self._clock() - start
            logger.debug(
                "Attempt succeeded",
                operation=name,
                attempt=attempt,
                elapsed_seconds=round(elapsed, 3),
            )
            metadata = RetryMetadata(
                total_attempts=attempt,
                total_elapsed_ms=int(elapsed * 1000),
                delays=tuple(delays),
                errors=tuple(errors),
                operation=name,
            )
            return result, metadata
