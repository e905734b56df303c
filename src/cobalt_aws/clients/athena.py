"""
Athena query execution built on the retry layer.

A query is started once, then polled until it reaches a terminal state.
Polling reuses RetryExecutor: a query that is still queued or running
raises QueryStillRunning (a TransientError), so the poll executor's
policy controls the poll interval and how long to wait.
"""

from typing import TYPE_CHECKING, Any, Optional

import structlog
from botocore.client import BaseClient

from cobalt_aws.clients.operation import AwsOperation
from cobalt_aws.retry.exceptions import PermanentError, TransientError
from cobalt_aws.retry.executor import RetryExecutor
from cobalt_aws.retry.policy import RetryPolicy, RetryPolicyConfig

if TYPE_CHECKING:
    from cobalt_aws.config import Settings

logger = structlog.get_logger(__name__)

RUNNING_STATES = frozenset({"QUEUED", "RUNNING"})


class QueryStillRunning(TransientError):
    """The query has not reached a terminal state yet."""


class QueryFailed(PermanentError):
    """The query finished in the FAILED or CANCELLED state."""


def poll_executor_from_settings(settings: "Settings") -> RetryExecutor:
    """Executor polling at a fixed interval, bounded by the ATHENA_POLL_* settings."""
    interval = settings.ATHENA_POLL_INTERVAL_SECONDS
    return RetryExecutor(
        RetryPolicy(
            RetryPolicyConfig(
                max_attempts=settings.ATHENA_POLL_MAX_ATTEMPTS,
                base_delay=interval,
                cap_delay=interval,
                max_total_duration=settings.ATHENA_POLL_MAX_DURATION_SECONDS,
                jitter_fraction=0.0,
            )
        )
    )


async def run_query(
    client: BaseClient,
    query: str,
    executor: RetryExecutor,
    poll_executor: RetryExecutor,
    workgroup: str = "primary",
    database: Optional[str] = None,
    output_location: Optional[str] = None,
) -> dict[str, Any]:
    """
    Start a query and wait for it to succeed.

    Args:
        client: Athena client
        query: SQL query string
        executor: Executor for the StartQueryExecution call
        poll_executor: Executor whose policy drives polling
        workgroup: Athena workgroup
        database: Default database for the query
        output_location: S3 URL for the query results

    Returns:
        The QueryExecution description of the succeeded query

    Raises:
        RetryExhausted: Starting failed, the query failed, or polling gave up
    """
    params: dict[str, Any] = {"QueryString": query, "WorkGroup": workgroup}
    if database:
        params["QueryExecutionContext"] = {"Database": database}
    if output_location:
        params["ResultConfiguration"] = {"OutputLocation": output_location}

    started = await executor.run(AwsOperation(client, "start_query_execution", **params))
    query_execution_id = started["QueryExecutionId"]
    logger.info("Athena query started", query_execution_id=query_execution_id, workgroup=workgroup)

    status_call = AwsOperation(client, "get_query_execution", QueryExecutionId=query_execution_id)

    async def _poll() -> dict[str, Any]:
        response = await status_call.attempt()
        execution = response["QueryExecution"]
        status = execution.get("Status", {})
        state = status.get("State")
        if state in RUNNING_STATES:
            raise QueryStillRunning(
                f"Query {query_execution_id} is {state}",
                {"query_execution_id": query_execution_id, "state": state},
            )
        if state != "SUCCEEDED":
            raise QueryFailed(
                f"Query {query_execution_id} ended in state {state}",
                {
                    "query_execution_id": query_execution_id,
                    "state": state,
                    "reason": status.get("StateChangeReason"),
                },
            )
        return execution

    execution = await poll_executor.execute(_poll, name="athena.wait_for_query")
    logger.info("Athena query succeeded", query_execution_id=query_execution_id)
    return execution


async def run_query_from_settings(
    client: BaseClient,
    query: str,
    settings: "Settings",
    database: Optional[str] = None,
    output_location: Optional[str] = None,
) -> dict[str, Any]:
    """Run a query in ATHENA_WORKGROUP with executors built from the settings."""
    return await run_query(
        client,
        query,
        executor=RetryExecutor.from_settings(settings),
        poll_executor=poll_executor_from_settings(settings),
        workgroup=settings.ATHENA_WORKGROUP,
        database=database,
        output_location=output_location,
    )
