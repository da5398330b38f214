"""
Image storage tests — local-directory backend on tmp_path and the S3
backend against a stubbed boto3 client.
"""
import io

import boto3
import pytest
from botocore.response import StreamingBody
from botocore.stub import ANY, Stubber

from app.exceptions import StorageError
from app.storage import ImageStorage


@pytest.fixture
def local_storage(tmp_path) -> ImageStorage:
    return ImageStorage(bucket="", local_dir=tmp_path)


@pytest.fixture
def s3_storage() -> ImageStorage:
    storage = ImageStorage(bucket="diary-images")
    storage._client = boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )
    return storage


def test_generate_key_scopes_by_owner():
    key = ImageStorage.generate_key("Photo.JPG", "42")
    owner, name = key.split("/")
    assert owner == "42"
    assert name.endswith(".jpg")
    assert ImageStorage.generate_key(None, "42").endswith(".bin")
    assert ImageStorage.generate_key("no-extension", "42").endswith(".bin")



def test_generate_key_drops_unsafe_extensions():
    for filename in ("a.png/../../999/planted", "photo.p\u00e4g", "archive.averyverylongext", "trailing."):
        key = ImageStorage.generate_key(filename, "1")
        owner, name = key.split("/")
        assert owner == "1"
        assert name.endswith(".bin")


def test_backend_selection():
    assert ImageStorage(bucket="", local_dir="x").is_local
    assert not ImageStorage(bucket="b").is_local


@pytest.mark.asyncio
async def test_local_upload_and_fetch(local_storage: ImageStorage, tmp_path):
    key = await local_storage.upload(b"pixels", "a.png", "image/png", "7")
    assert key.startswith("7/")
    assert (tmp_path / key).read_bytes() == b"pixels"
    assert await local_storage.fetch(key) == b"pixels"


@pytest.mark.asyncio
async def test_local_fetch_missing_key(local_storage: ImageStorage):
    with pytest.raises(StorageError):
        await local_storage.fetch("7/does-not-exist.png")


@pytest.mark.asyncio
async def test_local_fetch_rejects_path_traversal(local_storage: ImageStorage):
    with pytest.raises(StorageError):
        await local_storage.fetch("../../etc/passwd")


@pytest.mark.asyncio
async def test_s3_upload_and_fetch(s3_storage: ImageStorage):
    with Stubber(s3_storage.client) as stubber:
        stubber.add_response(
            "put_object",
            {},
            {"Bucket": "diary-images", "Key": ANY, "Body": b"pixels", "ContentType": "image/png"},
        )
        key = await s3_storage.upload(b"pixels", "a.png", "image/png", "7")

        stubber.add_response(
            "get_object",
            {"Body": StreamingBody(io.BytesIO(b"pixels"), len(b"pixels"))},
            {"Bucket": "diary-images", "Key": key},
        )
        assert await s3_storage.fetch(key) == b"pixels"
        stubber.assert_no_pending_responses()


@pytest.mark.asyncio
async def test_s3_errors_become_storage_errors(s3_storage: ImageStorage):
    with Stubber(s3_storage.client) as stubber:
        stubber.add_client_error("get_object", service_error_code="NoSuchKey", http_status_code=404)
        with pytest.raises(StorageError):
            await s3_storage.fetch("7/missing.png")
