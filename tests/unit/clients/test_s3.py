"""
Unit tests for S3 helpers with a mocked boto3 client.
"""

import io

import pytest

from cobalt_aws.clients.s3 import (
    MIN_PART_SIZE,
    MultipartUpload,
    S3Object,
    get_object,
    get_object_stream,
    list_objects,
    put_object,
)
from cobalt_aws.retry.exceptions import PermanentError, RetryExhausted


# ============================================================================
# S3Object
# ============================================================================


def test_s3_object_from_url():
    obj = S3Object.from_url("s3://my-bucket/some-prefix/nested-prefix/nested.txt")

    assert obj.bucket == "my-bucket"
    assert obj.key == "some-prefix/nested-prefix/nested.txt"
    assert obj.url == "s3://my-bucket/some-prefix/nested-prefix/nested.txt"
    assert str(obj) == obj.url


@pytest.mark.parametrize(
    "url",
    ["https://my-bucket/key", "s3:///key", "s3://my-bucket", "s3://my-bucket/", "not a url"],
)
def test_s3_object_rejects_invalid_urls(url):
    with pytest.raises(ValueError):
        S3Object.from_url(url)


# ============================================================================
# list_objects
# ============================================================================


@pytest.mark.asyncio
async def test_list_objects_follows_pagination(fast_executor, mock_s3_client):
    mock_s3_client.list_objects_v2.side_effect = [
        {
            "Contents": [{"Key": "a.txt", "Size": 1}, {"Key": "b.txt", "Size": 2}],
            "IsTruncated": True,
            "NextContinuationToken": "token-1",
        },
        {"Contents": [{"Key": "c.txt", "Size": 3}], "IsTruncated": False},
    ]

    keys = [obj["Key"] async for obj in list_objects(mock_s3_client, "bucket", fast_executor)]

    assert keys == ["a.txt", "b.txt", "c.txt"]
    first, second = mock_s3_client.list_objects_v2.call_args_list
    assert first.kwargs == {"Bucket": "bucket"}
    assert second.kwargs == {"Bucket": "bucket", "ContinuationToken": "token-1"}


@pytest.mark.asyncio
async def test_list_objects_with_prefix(fast_executor, mock_s3_client):
    mock_s3_client.list_objects_v2.return_value = {
        "Contents": [{"Key": "some-prefix/prefixed.txt", "Size": 14}],
        "IsTruncated": False,
    }

    objects = [
        obj async for obj in list_objects(mock_s3_client, "bucket", fast_executor, prefix="some-prefix/")
    ]

    assert objects == [{"Key": "some-prefix/prefixed.txt", "Size": 14}]
    mock_s3_client.list_objects_v2.assert_called_once_with(Bucket="bucket", Prefix="some-prefix/")


@pytest.mark.asyncio
async def test_list_objects_empty_bucket(fast_executor, mock_s3_client):
    mock_s3_client.list_objects_v2.return_value = {"KeyCount": 0, "IsTruncated": False}

    assert [obj async for obj in list_objects(mock_s3_client, "empty-bucket", fast_executor)] == []


@pytest.mark.asyncio
async def test_list_objects_retries_throttled_page(fast_executor, mock_s3_client, client_error):
    mock_s3_client.list_objects_v2.side_effect = [
        client_error("SlowDown", status_code=503),
        {"Contents": [{"Key": "a.txt"}], "IsTruncated": False},
    ]

    keys = [obj["Key"] async for obj in list_objects(mock_s3_client, "bucket", fast_executor)]

    assert keys == ["a.txt"]


@pytest.mark.asyncio
async def test_list_objects_missing_bucket(fast_executor, mock_s3_client, client_error):
    mock_s3_client.list_objects_v2.side_effect = client_error(
        "NoSuchBucket", status_code=404, operation="ListObjectsV2"
    )

    with pytest.raises(RetryExhausted) as exc_info:
        [obj async for obj in list_objects(mock_s3_client, "non-existant-bucket", fast_executor)]

    assert isinstance(exc_info.value.last_error, PermanentError)
    assert exc_info.value.last_error.details["error_code"] == "NoSuchBucket"


# ============================================================================
# get_object / put_object
# ============================================================================


@pytest.mark.asyncio
async def test_get_object_reads_body(fast_executor, mock_s3_client):
    mock_s3_client.get_object.return_value = {"Body": io.BytesIO(b"hello world")}

    data = await get_object(mock_s3_client, S3Object("bucket", "key.txt"), fast_executor)

    assert data == b"hello world"
    mock_s3_client.get_object.assert_called_once_with(Bucket="bucket", Key="key.txt")


@pytest.mark.asyncio
async def test_get_object_retries_transient_failure(fast_executor, mock_s3_client, client_error):
    mock_s3_client.get_object.side_effect = [
        client_error("InternalError", status_code=500),
        {"Body": io.BytesIO(b"data")},
    ]

    assert await get_object(mock_s3_client, S3Object("b", "k"), fast_executor) == b"data"


@pytest.mark.asyncio
async def test_get_object_missing_key(fast_executor, mock_s3_client, client_error):
    mock_s3_client.get_object.side_effect = client_error("NoSuchKey", status_code=404)

    with pytest.raises(RetryExhausted):
        await get_object(mock_s3_client, S3Object("b", "missing"), fast_executor)

    assert mock_s3_client.get_object.call_count == 1


@pytest.mark.asyncio
async def test_put_object(fast_executor, mock_s3_client):
    mock_s3_client.put_object.return_value = {"ETag": '"abc"'}

    response = await put_object(
        mock_s3_client, S3Object("bucket", "out.json"), b"{}", fast_executor, ContentType="application/json"
    )

    assert response == {"ETag": '"abc"'}
    mock_s3_client.put_object.assert_called_once_with(
        Bucket="bucket", Key="out.json", Body=b"{}", ContentType="application/json"
    )


# ============================================================================
# get_object_stream
# ============================================================================


@pytest.mark.asyncio
async def test_get_object_stream_returns_body(fast_executor, mock_s3_client, client_error):
    body = io.BytesIO(b"streamed")
    mock_s3_client.get_object.side_effect = [
        client_error("SlowDown", status_code=503),
        {"Body": body},
    ]

    stream = await get_object_stream(mock_s3_client, S3Object("bucket", "big.bin"), fast_executor)

    assert stream is body
    assert stream.read() == b"streamed"
    assert mock_s3_client.get_object.call_count == 2


# ============================================================================
# MultipartUpload
# ============================================================================


@pytest.fixture
def multipart_client(mock_s3_client):
    mock_s3_client.create_multipart_upload.return_value = {"UploadId": "upload-1"}
    mock_s3_client.upload_part.side_effect = lambda **kwargs: {"ETag": f'"etag-{kwargs["PartNumber"]}"'}
    mock_s3_client.complete_multipart_upload.return_value = {"ETag": '"final"'}
    return mock_s3_client


@pytest.mark.asyncio
async def test_multipart_upload_sends_full_parts_then_remainder(fast_executor, multipart_client):
    obj = S3Object("bucket", "big.bin")

    async with MultipartUpload(multipart_client, obj, fast_executor) as upload:
        await upload.write(b"a" * (MIN_PART_SIZE - 1))
        await upload.write(b"b" * 2)
        await upload.write(b"c" * 10)

    parts = multipart_client.upload_part.call_args_list
    assert [p.kwargs["PartNumber"] for p in parts] == [1, 2]
    assert len(parts[0].kwargs["Body"]) == MIN_PART_SIZE
    assert parts[1].kwargs["Body"] == b"b" + b"c" * 10
    multipart_client.complete_multipart_upload.assert_called_once_with(
        Bucket="bucket",
        Key="big.bin",
        UploadId="upload-1",
        MultipartUpload={
            "Parts": [
                {"PartNumber": 1, "ETag": '"etag-1"'},
                {"PartNumber": 2, "ETag": '"etag-2"'},
            ]
        },
    )
    multipart_client.abort_multipart_upload.assert_not_called()


@pytest.mark.asyncio
async def test_multipart_upload_empty_object(fast_executor, multipart_client):
    async with MultipartUpload(multipart_client, S3Object("b", "empty"), fast_executor):
        pass

    multipart_client.upload_part.assert_called_once()
    assert multipart_client.upload_part.call_args.kwargs["Body"] == b""
    multipart_client.complete_multipart_upload.assert_called_once()


@pytest.mark.asyncio
async def test_multipart_upload_retries_failed_part(fast_executor, multipart_client, client_error):
    multipart_client.upload_part.side_effect = [
        client_error("InternalError", status_code=500, operation="UploadPart"),
        {"ETag": '"etag-1"'},
    ]

    async with MultipartUpload(multipart_client, S3Object("b", "k"), fast_executor) as upload:
        await upload.write(b"x" * 10)

    assert multipart_client.upload_part.call_count == 2
    parts = multipart_client.complete_multipart_upload.call_args.kwargs["MultipartUpload"]["Parts"]
    assert parts == [{"PartNumber": 1, "ETag": '"etag-1"'}]


@pytest.mark.asyncio
async def test_multipart_upload_aborts_when_block_raises(fast_executor, multipart_client):
    with pytest.raises(ValueError, match="producer failed"):
        async with MultipartUpload(multipart_client, S3Object("b", "k"), fast_executor) as upload:
            await upload.write(b"x")
            raise ValueError("producer failed")

    multipart_client.abort_multipart_upload.assert_called_once_with(
        Bucket="b", Key="k", UploadId="upload-1"
    )
    multipart_client.complete_multipart_upload.assert_not_called()


@pytest.mark.asyncio
async def test_multipart_upload_aborts_when_complete_fails(
    fast_executor, multipart_client, client_error
):
    multipart_client.complete_multipart_upload.side_effect = client_error(
        "InvalidPart", status_code=400, operation="CompleteMultipartUpload"
    )

    with pytest.raises(RetryExhausted):
        async with MultipartUpload(multipart_client, S3Object("b", "k"), fast_executor) as upload:
            await upload.write(b"x")

    multipart_client.abort_multipart_upload.assert_called_once()


@pytest.mark.asyncio
async def test_multipart_upload_abort_failure_keeps_original_error(
    fast_executor, multipart_client, client_error
):
    multipart_client.abort_multipart_upload.side_effect = client_error(
        "AccessDenied", status_code=403, operation="AbortMultipartUpload"
    )

    with pytest.raises(ValueError, match="producer failed"):
        async with MultipartUpload(multipart_client, S3Object("b", "k"), fast_executor):
            raise ValueError("producer failed")


@pytest.mark.asyncio
async def test_multipart_upload_rejects_write_after_complete(fast_executor, multipart_client):
    upload = MultipartUpload(multipart_client, S3Object("b", "k"), fast_executor)

    with pytest.raises(RuntimeError, match="not started"):
        await upload.write(b"x")

    await upload.start()
    await upload.complete()

    with pytest.raises(RuntimeError, match="already completed"):
        await upload.write(b"x")


def test_multipart_upload_rejects_small_parts(mock_s3_client, fast_executor):
    with pytest.raises(ValueError):
        MultipartUpload(mock_s3_client, S3Object("b", "k"), fast_executor, part_size=1024)
