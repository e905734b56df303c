"""Monitoring and metrics instrumentation for cobalt-aws.

Exports custom Prometheus metrics for retries and batch outcomes.
"""

from cobalt_aws.monitoring.metrics import (
    batch_deadline_expired_total,
    batch_items_total,
    retry_attempts_total,
    retry_exhausted_total,
)

__all__ = [
    "retry_attempts_total",
    "retry_exhausted_total",
    "batch_items_total",
    "batch_deadline_expired_total",
]
