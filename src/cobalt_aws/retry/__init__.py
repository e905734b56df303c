"""
Retry layer for remote operations.

Every outbound call to a managed service goes through the same machinery:

1. **RetryPolicy**: classifies the error (transient vs permanent) and picks
   a jittered exponential backoff delay, or gives up
2. **RetryExecutor**: calls the operation, consults the policy, sleeps,
   and raises RetryExhausted once the policy gives up

Main Components:
    - RetryExecutor: Drives an operation until success or exhaustion
    - RetryPolicy / RetryPolicyConfig: Pure decision logic and its tuning
    - Retry / GiveUp: Policy decisions
    - RetryMetadata: Attempt history for diagnostics
    - TransientError / PermanentError / HandlerError / RetryExhausted: Error taxonomy

Usage:
    >>> from cobalt_aws.retry import RetryExecutor, RetryPolicy, RetryPolicyConfig
    >>> executor = RetryExecutor(RetryPolicy(RetryPolicyConfig(max_attempts=5)))
    >>> result = await executor.execute(lambda: call_service(), name="call_service")
"""

from cobalt_aws.retry.classifiers import classify_aws_error
from cobalt_aws.retry.exceptions import (
    HandlerError,
    OperationError,
    PermanentError,
    RetryExhausted,
    TransientError,
)
from cobalt_aws.retry.executor import Operation, RetryExecutor
from cobalt_aws.retry.metadata import RetryMetadata
from cobalt_aws.retry.policy import (
    GiveUp,
    Retry,
    RetryDecision,
    RetryPolicy,
    RetryPolicyConfig,
)

__all__ = [
    "RetryExecutor",
    "Operation",
    "RetryPolicy",
    "RetryPolicyConfig",
    "RetryDecision",
    "Retry",
    "GiveUp",
    "RetryMetadata",
    "OperationError",
    "TransientError",
    "PermanentError",
    "HandlerError",
    "RetryExhausted",
    "classify_aws_error",
]
