"""boto3 client construction with LocalStack support.

Clients are built once per process and shared read-only across
invocations; nothing here reads settings at import time.

LocalStack:
    When ``LOCALSTACK_HOSTNAME`` is set (LocalStack sets it inside Lambda
    containers, or export it yourself when testing from outside), clients
    talk to ``http://$LOCALSTACK_HOSTNAME:$EDGE_PORT`` and S3 uses
    path-style addressing.
"""

from dataclasses import dataclass
from typing import Any, Optional

import boto3
import structlog
from botocore.client import BaseClient
from botocore.config import Config

from cobalt_aws.config import Settings

logger = structlog.get_logger(__name__)


def get_endpoint_url(settings: Settings) -> Optional[str]:
    """Return the LocalStack edge endpoint, or None outside LocalStack.

    Raises:
        ValueError: LOCALSTACK_HOSTNAME is set but not a valid host
    """
    hostname = settings.LOCALSTACK_HOSTNAME
    if not hostname:
        return None
    hostname = hostname.strip()
    if not hostname or "/" in hostname or " " in hostname:
        raise ValueError(f"Invalid LOCALSTACK_HOSTNAME: {settings.LOCALSTACK_HOSTNAME!r}")
    return f"http://{hostname}:{settings.EDGE_PORT}"


def get_client(
    service_name: str,
    settings: Settings,
    session: Optional[boto3.Session] = None,
    **client_kwargs: Any,
) -> BaseClient:
    """Create a boto3 client for the given service.

    SDK-level retries are disabled (``max_attempts=1``) so that retries are
    governed by RetryExecutor only.

    Args:
        service_name: AWS service name (e.g. 's3', 'sqs', 'athena')
        settings: Library settings (region, LocalStack endpoint)
        session: Optional boto3 session to create the client from
        **client_kwargs: Extra client kwargs, override the computed ones
    """
    session = session or boto3.Session(region_name=settings.AWS_REGION)

    config = Config(retries={"max_attempts": 1, "mode": "standard"})
    endpoint_url = get_endpoint_url(settings)
    if endpoint_url and service_name == "s3":
        config = config.merge(Config(s3={"addressing_style": "path"}))

    kwargs: dict[str, Any] = {"config": config}
    if endpoint_url:
        kwargs["endpoint_url"] = endpoint_url
    kwargs.update(client_kwargs)

    logger.debug(
        "Creating AWS client",
        service=service_name,
        region=settings.AWS_REGION,
        endpoint_url=endpoint_url,
    )
    return session.client(service_name, **kwargs)


@dataclass(frozen=True)
class ServiceClients:
    """
    Shared service client handles.

    Built once per process (outside the handler) and passed explicitly
    to the code that needs them. boto3 clients are thread-safe, so the
    same handles serve concurrent item handlers.
    """

    s3: BaseClient
    sqs: BaseClient
    athena: BaseClient

    @classmethod
    def from_settings(
        cls, settings: Settings, session: Optional[boto3.Session] = None
    ) -> "ServiceClients":
        session = session or boto3.Session(region_name=settings.AWS_REGION)
        return cls(
            s3=get_client("s3", settings, session=session),
            sqs=get_client("sqs", settings, session=session),
            athena=get_client("athena", settings, session=session),
        )
