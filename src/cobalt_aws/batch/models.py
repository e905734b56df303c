"""
Data models for partial-batch-failure processing.

A queue-triggered invocation receives a batch of items. Each item is
processed independently and produces exactly one BatchItemResult. The
BatchResponse sent back to the trigger lists only the failed item
identifiers, so only those items are redelivered.

Wire format (Lambda partial batch response):

    {"batchItemFailures": [{"itemIdentifier": "<id>"}, ...]}

An empty list acknowledges the whole batch.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field


class BatchItem(BaseModel):
    """
    One unit of an inbound batch.

    The identifier is preserved verbatim from the inbound batch to the
    failure report; it is how the trigger matches redeliveries.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    item_identifier: str = Field(..., description="Identifier of the item within the batch")
    payload: Any = Field(None, description="Opaque item payload (e.g. message body)")
    attributes: dict[str, Any] = Field(
        default_factory=dict, description="Trigger-specific metadata for the item"
    )


class ItemOutcome(str, Enum):
    """Outcome of processing one batch item."""

    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class BatchItemResult:
    """
    Outcome record for one batch item.

    Created once when the item's handler completes; never mutated.

    Attributes:
        item_identifier: Identifier of the processed item
        outcome: SUCCESS or FAILURE
        cause: Exception that caused the failure (None on success)
    """

    item_identifier: str
    outcome: ItemOutcome
    cause: BaseException | None = None

    @classmethod
    def success(cls, item_identifier: str) -> "BatchItemResult":
        return cls(item_identifier, ItemOutcome.SUCCESS)

    @classmethod
    def failure(cls, item_identifier: str, cause: BaseException) -> "BatchItemResult":
        return cls(item_identifier, ItemOutcome.FAILURE, cause)

    @property
    def is_success(self) -> bool:
        return self.outcome is ItemOutcome.SUCCESS


class BatchItemFailure(BaseModel):
    """One entry of the partial batch response."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    item_identifier: str = Field(..., alias="itemIdentifier")


class BatchResponse(BaseModel):
    """
    Partial batch failure response.

    Contains one entry per failed item occurrence, in inbound order.
    Successful items are implicitly acknowledged by not being listed.
    """

    model_config = ConfigDict(populate_by_name=True)

    batch_item_failures: list[BatchItemFailure] = Field(
        default_factory=list, alias="batchItemFailures"
    )

    @classmethod
    def from_results(cls, results: Iterable[BatchItemResult]) -> "BatchResponse":
        """Build the response from per-item results, keeping failures only."""
        return cls(
            batch_item_failures=[
                BatchItemFailure(item_identifier=result.item_identifier)
                for result in results
                if not result.is_success
            ]
        )

    @property
    def failed_identifiers(self) -> list[str]:
        return [failure.item_identifier for failure in self.batch_item_failures]

    @property
    def is_empty(self) -> bool:
        """True when the whole batch is acknowledged."""
        return not self.batch_item_failures

    def to_lambda_response(self) -> dict[str, Any]:
        """Serialize to the dict returned from the Lambda handler."""
        return self.model_dump(by_alias=True)
