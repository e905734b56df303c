"""Operation adapter over a single boto3 client call.

boto3 is synchronous; the call runs in a worker thread so that concurrent
item handlers keep making progress while one of them waits on the network.
"""

import asyncio
from typing import Any

from botocore.client import BaseClient
from botocore.exceptions import BotoCoreError, ClientError

from cobalt_aws.retry.classifiers import classify_aws_error


class AwsOperation:
    """
    One AWS API call, re-invokable for every retry attempt.

    Example:
        op = AwsOperation(clients.sqs, "send_message", QueueUrl=url, MessageBody=body)
        response = await executor.run(op)
    """

    def __init__(self, client: BaseClient, method: str, **kwargs: Any):
        self.client = client
        self.method = method
        self.kwargs = kwargs
        service = getattr(getattr(client, "meta", None), "service_model", None)
        service_name = getattr(service, "service_name", None) or "aws"
        self.name = f"{service_name}.{method}"

    async def attempt(self) -> Any:
        """Perform the call once, raising TransientError or PermanentError on failure."""
        api_method = getattr(self.client, self.method)
        try:
            return await asyncio.to_thread(api_method, **self.kwargs)
        except (ClientError, BotoCoreError) as exc:
            raise classify_aws_error(exc) from exc
