"""
Partial-batch-failure coordinator.

Runs a per-item handler over every item of an inbound batch and reports
back only the identifiers of the items that failed, so the trigger
redelivers those items and acknowledges the rest.

Guarantees:
    - One item's failure never prevents the other items from being attempted
    - Any exception raised by a handler is converted to a failure outcome
    - Items still pending when the deadline elapses are cancelled and
      reported as failures
    - Duplicate identifiers are distinct items, reported once per failed occurrence

Usage:
    coordinator = BatchFailureCoordinator(max_concurrency=10, deadline=25.0)
    response = await coordinator.process(items, handle_item)
    return response.to_lambda_response()
"""

import asyncio
import time
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Iterable

import structlog

from cobalt_aws.batch.models import BatchItem, BatchItemResult, BatchResponse
from cobalt_aws.monitoring.metrics import batch_deadline_expired_total, batch_items_total
from cobalt_aws.retry.exceptions import TransientError

if TYPE_CHECKING:
    from cobalt_aws.config import Settings

logger = structlog.get_logger(__name__)

ItemHandler = Callable[[BatchItem], Awaitable[Any]]


class BatchDeadlineExceeded(TransientError):
    """The item was still pending when the batch deadline elapsed."""


class BatchFailureCoordinator:
    """
    Processes a batch with per-item failure isolation.

    A coordinator is created per invocation and discarded once the
    BatchResponse has been produced.

    Attributes:
        max_concurrency: Maximum number of item handlers running at once
        deadline: Time budget in seconds for the whole batch (None = no deadline)
        cancel_grace: Seconds given to cancelled handlers to unwind
        results: Per-item results of the last processed batch, in inbound order
    """

    def __init__(
        self,
        max_concurrency: int = 10,
        deadline: float | None = None,
        cancel_grace: float = 0.1,
    ):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        if deadline is not None and deadline < 0:
            raise ValueError("deadline must be >= 0")
        self.max_concurrency = max_concurrency
        self.deadline = deadline
        self.cancel_grace = cancel_grace
        self.results: list[BatchItemResult] = []

    @classmethod
    def from_settings(
        cls, settings: "Settings", remaining_time: float | None = None
    ) -> "BatchFailureCoordinator":
        """
        Build a coordinator from settings and the invocation's time budget.

        Args:
            settings: Library settings (concurrency, deadline margin)
            remaining_time: Seconds left in the invocation, as reported by the runtime
        """
        deadline = None
        if remaining_time is not None:
            deadline = max(remaining_time - settings.BATCH_DEADLINE_MARGIN_SECONDS, 0.0)
        return cls(max_concurrency=settings.BATCH_MAX_CONCURRENCY, deadline=deadline)

    async def process(
        self,
        batch: Iterable[BatchItem],
        handler: ItemHandler,
    ) -> BatchResponse:
        """
        Run ``handler`` over every item and build the partial batch response.

        Args:
            batch: Inbound items, in delivery order
            handler: Async callable processing one item; raising marks the item failed

        Returns:
            BatchResponse listing the failed item identifiers
        """
        items = list(batch)
        if not items:
            self.results = []
            logger.debug("Empty batch, nothing to process")
            return BatchResponse()

        start = time.monotonic()
        semaphore = asyncio.Semaphore(self.max_concurrency)
        slots: list[BatchItemResult | None] = [None] * len(items)

        async def run_item(index: int, item: BatchItem) -> None:
            async with semaphore:
                with structlog.contextvars.bound_contextvars(
                    item_identifier=item.item_identifier
                ):
                    try:
                        await handler(item)
                    except Exception as exc:
                        slots[index] = BatchItemResult.failure(item.item_identifier, exc)
                        logger.warning(
                            "Batch item failed",
                            item_identifier=item.item_identifier,
                            error_type=type(exc).__name__,
                            error=str(exc),
                            exc_info=exc,
                        )
                    else:
                        slots[index] = BatchItemResult.success(item.item_identifier)

        tasks = [
            asyncio.create_task(run_item(index, item))
            for index, item in enumerate(items)
        ]

        logger.info(
            "Processing batch",
            batch_size=len(items),
            max_concurrency=self.max_concurrency,
            deadline=self.deadline,
        )

        try:
            _, pending = await asyncio.wait(tasks, timeout=self.deadline)

            if pending:
                batch_deadline_expired_total.inc()
                for task in pending:
                    task.cancel()
                # Handlers that ignore cancellation are abandoned after the grace period
                await asyncio.wait(pending, timeout=self.cancel_grace)
        finally:
            # Item tasks never outlive process(), including when it is cancelled
            for task in tasks:
                if not task.done():
                    task.cancel()

        results: list[BatchItemResult] = []
        for item, slot in zip(items, slots):
            if slot is None:
                slot = BatchItemResult.failure(
                    item.item_identifier,
                    BatchDeadlineExceeded(
                        "Batch deadline elapsed before the item completed",
                        {"item_identifier": item.item_identifier, "deadline": self.deadline},
                    ),
                )
                logger.warning(
                    "Batch item still pending at deadline",
                    item_identifier=item.item_identifier,
                    deadline=self.deadline,
                )
            batch_items_total.labels(slot.outcome.value).inc()
            results.append(slot)

        self.results = results
        response = BatchResponse.from_results(results)

        logger.info(
            "Batch processed",
            batch_size=len(items),
            failed=len(response.batch_item_failures),
            timed_out=len(pending),
            duration_ms=round((time.monotonic() - start) * 1000, 2),
        )
        return response
