"""
Retry policy: pure decision logic for failed remote operations.

Given an error, the attempt number and the elapsed time, the policy decides
whether to retry (and after which delay) or to give up. It never sleeps and
never calls the operation; RetryExecutor does that.

Backoff:
    delay = min(base * 2^(attempt - 1), cap) ± jitter_fraction * delay

clamped to [0, cap]. Jitter spreads retries of concurrent invocations that
hit the same throttled service.
"""

import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from cobalt_aws.retry.exceptions import HandlerError, TransientError

if TYPE_CHECKING:
    from cobalt_aws.config import Settings


@dataclass(frozen=True)
class RetryPolicyConfig:
    """
    Retry tuning parameters.

    Attributes:
        max_attempts: Total attempts allowed, including the first one
        base_delay: Delay before the first retry (seconds)
        cap_delay: Upper bound for any single delay (seconds)
        max_total_duration: No retry is scheduled once this much time has elapsed (seconds)
        jitter_fraction: Relative jitter applied to each delay, in [0, 1]
    """

    max_attempts: int = 3
    base_delay: float = 0.1
    cap_delay: float = 5.0
    max_total_duration: float = 30.0
    jitter_fraction: float = 0.1

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")
        if self.cap_delay < self.base_delay:
            raise ValueError("cap_delay must be >= base_delay")
        if self.max_total_duration < 0:
            raise ValueError("max_total_duration must be >= 0")
        if not 0.0 <= self.jitter_fraction <= 1.0:
            raise ValueError("jitter_fraction must be within [0, 1]")

    @classmethod
    def from_settings(cls, settings: "Settings") -> "RetryPolicyConfig":
        """Build the config from environment-backed settings."""
        return cls(
            max_attempts=settings.RETRY_MAX_ATTEMPTS,
            base_delay=settings.RETRY_BASE_DELAY_SECONDS,
            cap_delay=settings.RETRY_CAP_DELAY_SECONDS,
            max_total_duration=settings.RETRY_MAX_TOTAL_DURATION_SECONDS,
            jitter_fraction=settings.RETRY_JITTER_FRACTION,
        )


@dataclass(frozen=True)
class Retry:
    """Retry the operation after ``delay`` seconds."""

    delay: float


@dataclass(frozen=True)
class GiveUp:
    """Stop retrying; ``terminal_error`` is surfaced to the caller."""

    terminal_error: BaseException


RetryDecision = Union[Retry, GiveUp]


class RetryPolicy:
    """
    Decides between retry and give-up for a failed attempt.

    Classification:
        - TransientError: retryable
        - HandlerError(retryable=True): retryable
        - anything else (PermanentError, HandlerError, unexpected exceptions):
          permanent, gives up immediately regardless of the attempt count
    """

    def __init__(
        self,
        config: RetryPolicyConfig | None = None,
        rng: random.Random | None = None,
    ):
        self.config = config or RetryPolicyConfig()
        self._rng = rng or random.Random()

    @staticmethod
    def is_transient(error: BaseException) -> bool:
        """Return True if the error is worth retrying."""
        if isinstance(error, TransientError):
            return True
        if isinstance(error, HandlerError):
            return error.retryable
        return False

    def backoff_delay(self, attempt_number: int) -> float:
        """Jittered exponential backoff after the given (1-indexed) attempt."""
        cfg = self.config
        delay = min(cfg.base_delay * (2 ** (attempt_number - 1)), cfg.cap_delay)
        if cfg.jitter_fraction:
            delay += self._rng.uniform(-1.0, 1.0) * cfg.jitter_fraction * delay
        return min(max(delay, 0.0), cfg.cap_delay)

    def decide(
        self, error: BaseException, attempt_number: int, elapsed: float
    ) -> RetryDecision:
        """
        Decide what to do after a failed attempt.

        Args:
            error: Error raised by the attempt
            attempt_number: Number of the attempt that failed (starts at 1)
            elapsed: Seconds since the first attempt started

        Returns:
            Retry(delay) or GiveUp(error)
        """
        if not self.is_transient(error):
            return GiveUp(error)

        if attempt_number >= self.config.max_attempts:
            return GiveUp(error)

        if elapsed > self.config.max_total_duration:
            return GiveUp(error)

        delay = self.backoff_delay(attempt_number)
        retry_after = getattr(error, "retry_after", None)
        if retry_after:
            delay = min(max(delay, float(retry_after)), self.config.cap_delay)
        return Retry(delay)
