"""SQS helpers built on the retry layer."""

from typing import Any

from botocore.client import BaseClient

from cobalt_aws.clients.operation import AwsOperation
from cobalt_aws.retry.executor import RetryExecutor


async def send_message(
    client: BaseClient,
    queue_url: str,
    body: str,
    executor: RetryExecutor,
    **kwargs: Any,
) -> str:
    """Send one message and return its MessageId."""
    response = await executor.run(
        AwsOperation(client, "send_message", QueueUrl=queue_url, MessageBody=body, **kwargs)
    )
    return response["MessageId"]
