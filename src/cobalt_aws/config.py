"""
Configuration settings for cobalt-aws.

All settings are loaded from environment variables with sensible defaults.
Lambda functions receive them through the function's environment; use a
.env file for local development against LocalStack.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    APP_NAME: str = "cobalt-aws"
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "production"  # "development" switches to console logs

    # === AWS ===
    AWS_REGION: Optional[str] = None  # Falls back to the boto3 default chain
    LOCALSTACK_HOSTNAME: Optional[str] = None  # Set inside/against LocalStack
    EDGE_PORT: int = 4566

    # === Retry ===
    RETRY_MAX_ATTEMPTS: int = 3  # Total attempts, including the first one
    RETRY_BASE_DELAY_SECONDS: float = 0.1
    RETRY_CAP_DELAY_SECONDS: float = 5.0
    RETRY_MAX_TOTAL_DURATION_SECONDS: float = 30.0
    RETRY_JITTER_FRACTION: float = 0.1

    # === Batch processing ===
    BATCH_MAX_CONCURRENCY: int = 10
    BATCH_DEADLINE_MARGIN_SECONDS: float = 2.0  # Kept back from the Lambda time budget

    # === Athena ===
    ATHENA_WORKGROUP: str = "primary"
    ATHENA_POLL_MAX_ATTEMPTS: int = 120
    ATHENA_POLL_INTERVAL_SECONDS: float = 1.0
    ATHENA_POLL_MAX_DURATION_SECONDS: float = 600.0


def get_settings() -> Settings:
    """Load settings from the current environment."""
    return Settings()
