"""
Partial batch failure processing for queue-triggered invocations.

- models.py: BatchItem, BatchItemResult, BatchResponse (wire format)
- coordinator.py: BatchFailureCoordinator (per-item isolation, deadline)
- sqs.py: SQS event parsing and the Lambda handler wrapper
"""

from cobalt_aws.batch.coordinator import BatchDeadlineExceeded, BatchFailureCoordinator
from cobalt_aws.batch.models import (
    BatchItem,
    BatchItemFailure,
    BatchItemResult,
    BatchResponse,
    ItemOutcome,
)
from cobalt_aws.batch.sqs import parse_sqs_event, sqs_batch_handler

__all__ = [
    "BatchFailureCoordinator",
    "BatchDeadlineExceeded",
    "BatchItem",
    "BatchItemResult",
    "BatchItemFailure",
    "BatchResponse",
    "ItemOutcome",
    "parse_sqs_event",
    "sqs_batch_handler",
]
