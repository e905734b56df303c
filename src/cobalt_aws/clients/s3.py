"""
S3 helpers built on the retry layer.

- S3Object: bucket/key pair with ``s3://`` URL parsing
- list_objects: every object under a prefix, following pagination
- get_object / put_object: whole-object reads and writes
- get_object_stream: streaming reads of large objects
- MultipartUpload: streaming writes of large objects, in parts

Every remote call goes through a RetryExecutor, one retry budget per call
(a listing retries each page on its own, an upload each part).
"""

import asyncio
from dataclasses import dataclass
from typing import Any, AsyncIterator, Optional
from urllib.parse import urlparse

import structlog
from botocore.client import BaseClient
from botocore.exceptions import BotoCoreError, ClientError
from botocore.response import StreamingBody

from cobalt_aws.clients.operation import AwsOperation
from cobalt_aws.retry.classifiers import classify_aws_error
from cobalt_aws.retry.executor import RetryExecutor

logger = structlog.get_logger(__name__)

MIN_PART_SIZE = 5 * 1024 * 1024


@dataclass(frozen=True)
class S3Object:
    """A bucket/key pair identifying an S3 object."""

    bucket: str
    key: str

    @classmethod
    def from_url(cls, url: str) -> "S3Object":
        """
        Parse an ``s3://bucket/key`` URL.

        Raises:
            ValueError: Scheme is not s3, or bucket/key is missing
        """
        parsed = urlparse(url)
        if parsed.scheme != "s3":
            raise ValueError(f"Expected an s3:// URL, got {url!r}")
        if not parsed.netloc:
            raise ValueError(f"Missing bucket in S3 URL {url!r}")
        key = parsed.path.lstrip("/")
        if not key:
            raise ValueError(f"Missing key in S3 URL {url!r}")
        return cls(bucket=parsed.netloc, key=key)

    @property
    def url(self) -> str:
        return f"s3://{self.bucket}/{self.key}"

    def __str__(self) -> str:
        return self.url


async def list_objects(
    client: BaseClient,
    bucket: str,
    executor: RetryExecutor,
    prefix: Optional[str] = None,
) -> AsyncIterator[dict[str, Any]]:
    """
    Yield every object in ``bucket`` (optionally under ``prefix``).

    Uses ListObjectsV2 and follows continuation tokens until the listing
    is complete. Objects are yielded as returned by the API (Key, Size,
    ETag, LastModified...).
    """
    params: dict[str, Any] = {"Bucket": bucket}
    if prefix:
        params["Prefix"] = prefix

    pages = 0
    while True:
        page = await executor.run(AwsOperation(client, "list_objects_v2", **params))
        pages += 1
        for obj in page.get("Contents", []):
            yield obj
        if not page.get("IsTruncated"):
            break
        params["ContinuationToken"] = page["NextContinuationToken"]

    logger.debug("Listed S3 objects", bucket=bucket, prefix=prefix, pages=pages)


async def get_object(
    client: BaseClient,
    obj: S3Object,
    executor: RetryExecutor,
) -> bytes:
    """Download the whole object body."""

    def _download() -> bytes:
        response = client.get_object(Bucket=obj.bucket, Key=obj.key)
        return response["Body"].read()

    async def _attempt() -> bytes:
        try:
            return await asyncio.to_thread(_download)
        except (ClientError, BotoCoreError) as exc:
            raise classify_aws_error(exc) from exc

    return await executor.execute(_attempt, name="s3.get_object")


async def put_object(
    client: BaseClient,
    obj: S3Object,
    body: bytes,
    executor: RetryExecutor,
    **kwargs: Any,
) -> dict[str, Any]:
    """Upload ``body`` to the object, replacing any existing content."""
    return await executor.run(
        AwsOperation(client, "put_object", Bucket=obj.bucket, Key=obj.key, Body=body, **kwargs)
    )


async def get_object_stream(
    client: BaseClient,
    obj: S3Object,
    executor: RetryExecutor,
) -> StreamingBody:
    """
    Open the object for streaming reads.

    Only the request is retried; reads from the returned body are not.
    Close the body when done to release the connection.
    """
    response = await executor.run(
        AwsOperation(client, "get_object", Bucket=obj.bucket, Key=obj.key)
    )
    return response["Body"]


class MultipartUpload:
    """
    Uploads an object in parts as data is written.

    Data is buffered until ``part_size`` bytes are available, then sent as
    one part. Each S3 call has its own retry budget. Used as an async
    context manager, the upload is completed on normal exit and aborted
    when the block raises, so no orphaned parts are left behind.

    Example:
        async with MultipartUpload(clients.s3, S3Object(bucket, key), executor) as upload:
            async for chunk in produce_chunks():
                await upload.write(chunk)

    Attributes:
        obj: Destination object
        part_size: Bytes per uploaded part (S3 minimum is 5 MiB, except the last part)
        upload_id: Multipart upload id, set by ``start``
    """

    def __init__(
        self,
        client: BaseClient,
        obj: S3Object,
        executor: RetryExecutor,
        part_size: int = MIN_PART_SIZE,
        **create_kwargs: Any,
    ):
        if part_size < MIN_PART_SIZE:
            raise ValueError(f"part_size must be >= {MIN_PART_SIZE} bytes")
        self.client = client
        self.obj = obj
        self.executor = executor
        self.part_size = part_size
        self.create_kwargs = create_kwargs
        self.upload_id: Optional[str] = None
        self._buffer = bytearray()
        self._parts: list[dict[str, Any]] = []
        self._closed = False

    async def __aenter__(self) -> "MultipartUpload":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._closed:
            return
        if exc_type is None:
            try:
                await self.complete()
            except Exception:
                await self._abort_quietly()
                raise
        else:
            await self._abort_quietly()

    async def _abort_quietly(self) -> None:
        # The error that caused the abort takes precedence over abort failures
        try:
            await self.abort()
        except Exception as abort_exc:
            logger.error(
                "Failed to abort multipart upload",
                object=self.obj.url,
                upload_id=self.upload_id,
                error=str(abort_exc),
            )

    async def start(self) -> str:
        """Create the multipart upload and return its id."""
        response = await self.executor.run(
            AwsOperation(
                self.client,
                "create_multipart_upload",
                Bucket=self.obj.bucket,
                Key=self.obj.key,
                **self.create_kwargs,
            )
        )
        self.upload_id = response["UploadId"]
        logger.debug("Multipart upload started", object=self.obj.url, upload_id=self.upload_id)
        return self.upload_id

    async def write(self, data: bytes) -> None:
        """Buffer ``data``, uploading full parts as they become available."""
        self._check_open()
        self._buffer.extend(data)
        while len(self._buffer) >= self.part_size:
            part = bytes(self._buffer[: self.part_size])
            del self._buffer[: self.part_size]
            await self._upload_part(part)

    async def complete(self) -> dict[str, Any]:
        """Upload the remaining buffered data and assemble the object."""
        self._check_open()
        # S3 needs at least one part, possibly empty
        if self._buffer or not self._parts:
            part = bytes(self._buffer)
            self._buffer.clear()
            await self._upload_part(part)

        response = await self.executor.run(
            AwsOperation(
                self.client,
                "complete_multipart_upload",
                Bucket=self.obj.bucket,
                Key=self.obj.key,
                UploadId=self.upload_id,
                MultipartUpload={"Parts": self._parts},
            )
        )
        self._closed = True
        logger.info(
            "Multipart upload completed",
            object=self.obj.url,
            parts=len(self._parts),
        )
        return response

    async def abort(self) -> None:
        """Abort the upload, discarding every uploaded part."""
        if self.upload_id is None:
            self._closed = True
            return
        self._closed = True
        await self.executor.run(
            AwsOperation(
                self.client,
                "abort_multipart_upload",
                Bucket=self.obj.bucket,
                Key=self.obj.key,
                UploadId=self.upload_id,
            )
        )
        logger.warning("Multipart upload aborted", object=self.obj.url, upload_id=self.upload_id)

    async def _upload_part(self, data: bytes) -> None:
        part_number = len(self._parts) + 1
        response = await self.executor.run(
            AwsOperation(
                self.client,
                "upload_part",
                Bucket=self.obj.bucket,
                Key=self.obj.key,
                UploadId=self.upload_id,
                PartNumber=part_number,
                Body=data,
            )
        )
        self._parts.append({"PartNumber": part_number, "ETag": response["ETag"]})

    def _check_open(self) -> None:
        if self.upload_id is None:
            raise RuntimeError("Multipart upload not started")
        if self._closed:
            raise RuntimeError("Multipart upload already completed or aborted")
