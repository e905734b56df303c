"""Unit test fixtures (mocks and stubs).

Provides mock objects for testing without AWS access.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from botocore.exceptions import ClientError

from cobalt_aws.retry.executor import RetryExecutor
from cobalt_aws.retry.policy import RetryPolicy, RetryPolicyConfig


@pytest.fixture
def mock_sleep():
    """Async sleep replacement recording the requested delays."""
    return AsyncMock(return_value=None)


@pytest.fixture
def no_jitter_config() -> RetryPolicyConfig:
    """Deterministic policy config (no jitter)."""
    return RetryPolicyConfig(
        max_attempts=3,
        base_delay=0.1,
        cap_delay=1.0,
        max_total_duration=30.0,
        jitter_fraction=0.0,
    )


@pytest.fixture
def fast_executor(no_jitter_config, mock_sleep) -> RetryExecutor:
    """Executor that never actually sleeps."""
    return RetryExecutor(RetryPolicy(no_jitter_config), sleep=mock_sleep)


@pytest.fixture
def client_error():
    """Factory for botocore ClientError instances."""

    def _make(
        code: str,
        status_code: int = 400,
        operation: str = "GetObject",
        message: str = "error message",
        headers: dict | None = None,
    ) -> ClientError:
        response = {
            "Error": {"Code": code, "Message": message},
            "ResponseMetadata": {
                "HTTPStatusCode": status_code,
                "HTTPHeaders": headers or {},
            },
        }
        return ClientError(response, operation)

    return _make


@pytest.fixture
def mock_s3_client():
    """Mock boto3 S3 client (sync, as boto3 is)."""
    mock = MagicMock()
    mock.meta.service_model.service_name = "s3"
    return mock


@pytest.fixture
def mock_sqs_client():
    """Mock boto3 SQS client."""
    mock = MagicMock()
    mock.meta.service_model.service_name = "sqs"
    return mock


@pytest.fixture
def mock_athena_client():
    """Mock boto3 Athena client."""
    mock = MagicMock()
    mock.meta.service_model.service_name = "athena"
    return mock
