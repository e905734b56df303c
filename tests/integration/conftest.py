"""Integration test fixtures (service checks and prerequisites).

Integration tests run against LocalStack and are skipped when
LOCALSTACK_HOSTNAME is not set or LocalStack is not reachable.
"""

import os
import uuid

import pytest

from cobalt_aws.clients.session import ServiceClients
from cobalt_aws.config import Settings
from cobalt_aws.retry.executor import RetryExecutor


@pytest.fixture(scope="session")
def localstack_settings() -> Settings:
    """Settings pointing at LocalStack; skips if it is not configured."""
    if not os.environ.get("LOCALSTACK_HOSTNAME"):
        pytest.skip("LocalStack not configured (LOCALSTACK_HOSTNAME unset)")
    return Settings(
        _env_file=None,
        AWS_REGION=os.environ.get("AWS_REGION", "ap-southeast-2"),
        RETRY_BASE_DELAY_SECONDS=0.05,
        RETRY_CAP_DELAY_SECONDS=0.5,
    )


@pytest.fixture(scope="session")
def clients(localstack_settings) -> ServiceClients:
    """Shared clients; skips if LocalStack is not reachable."""
    clients = ServiceClients.from_settings(localstack_settings)
    try:
        clients.s3.list_buckets()
    except Exception as e:
        pytest.skip(f"LocalStack not available: {e}")
    return clients


@pytest.fixture
def executor(localstack_settings) -> RetryExecutor:
    return RetryExecutor.from_settings(localstack_settings)


@pytest.fixture
def bucket(clients, localstack_settings) -> str:
    """A fresh bucket for one test."""
    name = f"cobalt-aws-test-{uuid.uuid4().hex[:12]}"
    kwargs = {}
    if localstack_settings.AWS_REGION != "us-east-1":
        kwargs["CreateBucketConfiguration"] = {
            "LocationConstraint": localstack_settings.AWS_REGION
        }
    clients.s3.create_bucket(Bucket=name, **kwargs)
    return name


@pytest.fixture
def queue_url(clients) -> str:
    """A fresh SQS queue for one test."""
    response = clients.sqs.create_queue(QueueName=f"cobalt-aws-test-{uuid.uuid4().hex[:12]}")
    return response["QueueUrl"]
