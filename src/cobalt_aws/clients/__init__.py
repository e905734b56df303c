"""
Thin wrappers around the AWS services used from Lambda functions.

- session.py: boto3 client construction (LocalStack aware), ServiceClients
- operation.py: AwsOperation, the Operation adapter over a boto3 call
- s3.py / sqs.py / athena.py: service helpers using RetryExecutor
"""

from cobalt_aws.clients.athena import (
    QueryFailed,
    QueryStillRunning,
    run_query,
    run_query_from_settings,
)
from cobalt_aws.clients.operation import AwsOperation
from cobalt_aws.clients.s3 import (
    MultipartUpload,
    S3Object,
    get_object,
    get_object_stream,
    list_objects,
    put_object,
)
from cobalt_aws.clients.session import ServiceClients, get_client, get_endpoint_url
from cobalt_aws.clients.sqs import send_message

__all__ = [
    "AwsOperation",
    "ServiceClients",
    "get_client",
    "get_endpoint_url",
    "S3Object",
    "list_objects",
    "get_object",
    "put_object",
    "get_object_stream",
    "MultipartUpload",
    "send_message",
    "run_query",
    "run_query_from_settings",
    "QueryStillRunning",
    "QueryFailed",
]
