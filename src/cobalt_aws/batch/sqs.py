"""
SQS-triggered Lambda entry point with partial batch failure reporting.

The event source mapping must have ``ReportBatchItemFailures`` enabled for
the returned ``batchItemFailures`` to be honoured; otherwise any failure
redelivers the whole batch.

Usage:
    from cobalt_aws.batch.sqs import sqs_batch_handler

    async def handle(item: BatchItem) -> None:
        order = json.loads(item.payload)
        await process_order(order)

    lambda_handler = sqs_batch_handler(handle)
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Coroutine, TypeVar

import structlog

from cobalt_aws.batch.coordinator import BatchFailureCoordinator, ItemHandler
from cobalt_aws.batch.models import BatchItem, BatchResponse
from cobalt_aws.config import Settings, get_settings
from cobalt_aws.logging_config import ensure_logging
from cobalt_aws.retry.exceptions import PermanentError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def parse_sqs_event(event: dict[str, Any]) -> list[BatchItem]:
    """
    Convert an SQS Lambda event into batch items.

    ``messageId`` becomes the item identifier, ``body`` the payload and the
    remaining record fields (attributes, receiptHandle, eventSourceARN...)
    the item attributes.

    Raises:
        PermanentError: A record has no messageId
    """
    items: list[BatchItem] = []
    for position, record in enumerate(event.get("Records") or []):
        message_id = record.get("messageId")
        if not message_id:
            raise PermanentError(
                "SQS record without messageId",
                {"position": position, "event_source": record.get("eventSource")},
            )
        attributes = {k: v for k, v in record.items() if k not in ("messageId", "body")}
        items.append(
            BatchItem(
                item_identifier=message_id,
                payload=record.get("body"),
                attributes=attributes,
            )
        )
    return items


def _remaining_seconds(context: Any) -> float | None:
    get_remaining = getattr(context, "get_remaining_time_in_millis", None)
    if get_remaining is None:
        return None
    return get_remaining() / 1000.0


def _run_detached(coro: Coroutine[Any, Any, T]) -> T:
    """
    Run ``coro`` on a private event loop and return without waiting on leftovers.

    ``asyncio.run`` joins every task and worker thread before returning, so a
    handler that ignores cancellation or a hung SDK call in ``to_thread``
    would hold the response past the invocation timeout. Here abandoned
    tasks are cancelled and dropped, and worker threads are left to finish
    on their own.
    """
    loop = asyncio.new_event_loop()
    thread_pool = ThreadPoolExecutor(thread_name_prefix="cobalt-aws")
    loop.set_default_executor(thread_pool)
    try:
        return loop.run_until_complete(coro)
    finally:
        leftovers = [task for task in asyncio.all_tasks(loop) if not task.done()]
        for task in leftovers:
            task.cancel()
        if leftovers:
            logger.warning("Abandoning unfinished tasks", count=len(leftovers))
        thread_pool.shutdown(wait=False, cancel_futures=True)
        loop.close()


async def process_sqs_event(
    event: dict[str, Any],
    handler: ItemHandler,
    coordinator: BatchFailureCoordinator,
) -> BatchResponse:
    """Parse the SQS event and run it through the coordinator."""
    items = parse_sqs_event(event)
    return await coordinator.process(items, handler)


def sqs_batch_handler(
    handler: ItemHandler,
    settings: Settings | None = None,
) -> Callable[[dict[str, Any], Any], dict[str, Any]]:
    """
    Wrap a per-item async handler into a synchronous Lambda handler.

    The returned function configures logging on first use, creates a fresh
    coordinator for every invocation with a deadline derived from the
    remaining invocation time, and returns the partial batch response.

    Args:
        handler: Async callable processing one BatchItem
        settings: Settings to use (loaded from the environment when omitted)
    """

    def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
        cfg = settings or get_settings()
        ensure_logging(cfg.LOG_LEVEL, cfg.ENVIRONMENT)

        structlog.contextvars.bind_contextvars(
            aws_request_id=getattr(context, "aws_request_id", None),
            function_name=getattr(context, "function_name", None),
        )
        try:
            coordinator = BatchFailureCoordinator.from_settings(
                cfg, remaining_time=_remaining_seconds(context)
            )
            response = _run_detached(process_sqs_event(event, handler, coordinator))
            return response.to_lambda_response()
        finally:
            structlog.contextvars.clear_contextvars()

    return lambda_handler
