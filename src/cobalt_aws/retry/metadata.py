"""
Retry metadata tracking.

This module defines the RetryMetadata dataclass that captures the attempt
history of one operation execution for logs and diagnostics.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class RetryMetadata:
    """
    Attempt history of one RetryExecutor run.

    Attributes:
        total_attempts: Number of times the operation was attempted
        total_elapsed_ms: Time from the first attempt to the final outcome (ms)
        delays: Backoff delays slept between attempts, in seconds
        errors: One entry per failed attempt (attempt, error_type, message, transient)
        operation: Name of the operation, when known
    """

    total_attempts: int
    total_elapsed_ms: int
    delays: tuple[float, ...] = ()
    errors: tuple[dict, ...] = ()
    operation: str | None = None

    def __post_init__(self) -> None:
        """Validate metadata invariants."""
        if self.total_attempts < 1:
            raise ValueError("total_attempts must be >= 1")

        if self.total_elapsed_ms < 0:
            raise ValueError("total_elapsed_ms must be >= 0")

        if len(self.delays) >= self.total_attempts:
            raise ValueError("delays must be fewer than total_attempts")

    @property
    def succeeded(self) -> bool:
        """True when the last attempt did not fail."""
        return len(self.errors) < self.total_attempts
