"""Error classifiers for AWS SDK exceptions.

Converts botocore exceptions into the TransientError / PermanentError
taxonomy understood by RetryPolicy, so every service adapter classifies
failures the same way.

Usage:
    from cobalt_aws.retry.classifiers import classify_aws_error

    try:
        response = client.get_object(Bucket=bucket, Key=key)
    except (ClientError, BotoCoreError) as exc:
        raise classify_aws_error(exc) from exc
"""

from typing import Any

from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from cobalt_aws.retry.exceptions import OperationError, PermanentError, TransientError

THROTTLING_CODES = frozenset(
    {
        "Throttling",
        "ThrottlingException",
        "ThrottledException",
        "RequestLimitExceeded",
        "RequestThrottled",
        "RequestThrottledException",
        "TooManyRequestsException",
        "ProvisionedThroughputExceededException",
        "SlowDown",
        "EC2ThrottledException",
    }
)

TRANSIENT_CODES = frozenset(
    {
        "InternalError",
        "InternalFailure",
        "InternalServerError",
        "InternalServerException",
        "ServiceUnavailable",
        "ServiceUnavailableException",
        "RequestTimeout",
        "RequestTimeoutException",
        "PriorRequestNotComplete",
    }
)

_CONNECTION_ERRORS = (
    EndpointConnectionError,
    ConnectTimeoutError,
    ReadTimeoutError,
    ConnectionClosedError,
)


def _retry_after(response: dict[str, Any]) -> float | None:
    headers = response.get("ResponseMetadata", {}).get("HTTPHeaders", {}) or {}
    value = headers.get("retry-after")
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def classify_aws_error(exc: Exception) -> OperationError:
    """Classify an AWS SDK error as transient or permanent.

    Error Code Mapping:
    - Throttling codes: TransientError, with retry_after when the service sends one
    - 5xx / internal / unavailable / timeout codes: TransientError
    - Everything else reported by the service (4xx): PermanentError
    - Connection and timeout errors from botocore: TransientError
    - Other botocore errors (bad parameters, missing credentials): PermanentError

    Errors that are already classified are returned unchanged.

    Args:
        exc: Exception raised by boto3/botocore

    Returns:
        TransientError or PermanentError carrying the AWS error code in details
    """
    if isinstance(exc, OperationError):
        return exc

    if isinstance(exc, ClientError):
        response = exc.response or {}
        error_info = response.get("Error", {})
        error_code = error_info.get("Code", "Unknown")
        message = error_info.get("Message") or str(exc)
        status_code = response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        details = {
            "error_code": error_code,
            "status_code": status_code,
            "operation": exc.operation_name,
        }

        if error_code in THROTTLING_CODES or status_code == 429:
            return TransientError(
                f"AWS API throttled: {message}",
                details,
                retry_after=_retry_after(response),
            )

        if error_code in TRANSIENT_CODES or (status_code and status_code >= 500):
            return TransientError(f"AWS service error ({error_code}): {message}", details)

        return PermanentError(f"AWS client error ({error_code}): {message}", details)

    if isinstance(exc, _CONNECTION_ERRORS):
        return TransientError(
            f"AWS connection error: {type(exc).__name__}: {exc}",
            {"error_code": "CONNECTION_ERROR"},
        )

    if isinstance(exc, BotoCoreError):
        return PermanentError(
            f"AWS SDK error: {type(exc).__name__}: {exc}",
            {"error_code": "SDK_ERROR"},
        )

    return PermanentError(
        f"Unexpected error: {type(exc).__name__}: {exc}",
        {"error_code": "UNKNOWN_ERROR"},
    )
