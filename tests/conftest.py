"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration tests.
"""

import pytest

from cobalt_aws.config import Settings


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults for local testing.

    Explicit values win over the process environment, so tests do not
    depend on AWS_* or LOCALSTACK_* variables of the machine running them.
    """
    return Settings(
        # === Application ===
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",

        # === AWS ===
        AWS_REGION="ap-southeast-2",
        LOCALSTACK_HOSTNAME=None,
        EDGE_PORT=4566,

        # === Retry ===
        RETRY_MAX_ATTEMPTS=3,
        RETRY_BASE_DELAY_SECONDS=0.01,
        RETRY_CAP_DELAY_SECONDS=0.05,
        RETRY_MAX_TOTAL_DURATION_SECONDS=5.0,
        RETRY_JITTER_FRACTION=0.0,

        # === Batch ===
        BATCH_MAX_CONCURRENCY=4,
        BATCH_DEADLINE_MARGIN_SECONDS=1.0,
    )
