"""Custom Prometheus metrics for cobalt-aws.

Counters live in the default registry of the process. Lambda functions
usually push them with an embedded exporter or scrape them in local runs.
Alert rules should be configured for:
- retry_exhausted_total (remote dependency failing past the retry budget)
- batch_items_total{outcome="failure"} (items sent back for redelivery)
- batch_deadline_expired_total (invocations running out of time)
"""

from prometheus_client import Counter

# === Retry Metrics ===

retry_attempts_total = Counter(
    "retry_attempts_total",
    "Total failed attempts by error classification and policy decision",
    ["classification", "decision"],
)
"""
Failed attempts counter.

Labels:
- classification: transient, permanent
- decision: retry, give_up
"""

retry_exhausted_total = Counter(
    "retry_exhausted_total",
    "Total operations that gave up after retries",
    ["classification"],
)
"""
Operations surfaced to the caller as RetryExhausted.

Labels:
- classification: classification of the terminal error (transient, permanent)
"""

# === Batch Metrics ===

batch_items_total = Counter(
    "batch_items_total",
    "Total batch items processed by outcome",
    ["outcome"],
)
"""
Batch item outcomes.

Labels:
- outcome: success, failure
"""

batch_deadline_expired_total = Counter(
    "batch_deadline_expired_total",
    "Total batches whose deadline elapsed with items still pending",
)
