"""
Error taxonomy for remote operations.

The retry policy only needs to know whether a failure is worth retrying:

- TransientError: timeouts, throttling, temporary unavailability (retried)
- PermanentError: malformed input, authorization failure, not found (not retried)
- HandlerError: application-level failure from business logic; permanent
  unless explicitly marked retryable

RetryExhausted is raised by the executor once the policy gives up and
wraps the terminal error for diagnosability.
"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cobalt_aws.retry.metadata import RetryMetadata


class OperationError(Exception):
    """
    Base exception for all remote operation errors.

    Attributes:
        message: Human-readable error description
        details: Structured error data for logging
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class TransientError(OperationError):
    """
    A failure expected to resolve on retry without caller intervention.

    Attributes:
        retry_after: Minimum delay in seconds requested by the remote service
            (e.g. from a throttling response), or None
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        retry_after: float | None = None,
    ):
        super().__init__(message, details)
        self.retry_after = retry_after


class PermanentError(OperationError):
    """A failure that retrying cannot resolve."""


class HandlerError(OperationError):
    """
    Application-level failure raised by business logic.

    Treated as permanent unless constructed with ``retryable=True``.
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ):
        super().__init__(message, details)
        self.retryable = retryable


class RetryExhausted(OperationError):
    """
    Raised when the retry policy gives up on an operation.

    The terminal error is chained as ``__cause__`` and kept as ``last_error``.

    Attributes:
        last_error: Final error that caused the policy to give up
        attempts: Number of attempts made
        elapsed: Seconds spent from the first attempt to giving up
        retry_metadata: Complete attempt history
    """

    def __init__(
        self,
        last_error: BaseException,
        attempts: int,
        elapsed: float,
        retry_metadata: "RetryMetadata | None" = None,
    ) -> None:
        self.last_error = last_error
        self.attempts = attempts
        self.elapsed = elapsed
        self.retry_metadata = retry_metadata

        super().__init__(
            f"Exhausted after {attempts} attempt(s) over {elapsed:.3f}s. "
            f"Final error: {type(last_error).__name__}: {last_error}",
            {
                "attempts": attempts,
                "elapsed_seconds": round(elapsed, 3),
                "final_error_type": type(last_error).__name__,
            },
        )

    def __str__(self) -> str:
        return self.message
