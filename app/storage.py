"""
Image storage — S3 or a local directory.

A bucket name in ``AWS_S3_BUCKET`` selects S3; otherwise blobs are written
under ``LOCAL_UPLOADS_DIR``.  Keys are ``{owner_scope}/{uuid}.{ext}`` and
are treated as opaque by everything outside this module.

boto3 and file I/O block, so the public coroutines hand the work to the
Starlette threadpool.
"""
import logging
import uuid
from pathlib import Path

from botocore.exceptions import BotoCoreError, ClientError
from starlette.concurrency import run_in_threadpool

from app.config import settings
from app.exceptions import StorageError

logger = logging.getLogger(__name__)

_MAX_EXT_LENGTH = 8


class ImageStorage:
    def __init__(self, bucket: str | None = None, local_dir: str | Path | None = None) -> None:
        self.bucket = settings.AWS_S3_BUCKET if bucket is None else bucket
        self.local_dir = Path(local_dir if local_dir is not None else settings.LOCAL_UPLOADS_DIR)
        self._client = None

    @property
    def is_local(self) -> bool:
        return not self.bucket

    @property
    def client(self):
        if self._client is None:
            import boto3

            # Empty credentials fall through to boto3's default chain.
            self._client = boto3.client(
                "s3",
                region_name=settings.AWS_S3_REGION,
                aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
                aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
            )
        return self._client

    @staticmethod
    def generate_key(filename: str | None, owner_scope: str) -> str:
        ext = filename.rsplit(".", 1)[-1].lower() if filename and "." in filename else ""
        if not (ext.isascii() and ext.isalnum() and len(ext) <= _MAX_EXT_LENGTH):
            ext = "bin"
        return f"{owner_scope}/{uuid.uuid4().hex}.{ext}"

    def _local_path(self, key: str) -> Path:
        root = self.local_dir.resolve()
        path = (root / key).resolve()
        if not path.is_relative_to(root):
            raise StorageError(f"Invalid storage key: {key!r}")
        return path

    # ------------------------------------------------------------------
    # Blocking implementations
    # ------------------------------------------------------------------

    def _put(self, key: str, data: bytes, content_type: str | None) -> None:
        if self.is_local:
            path = self._local_path(key)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
            return
        self.client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type or "application/octet-stream",
        )

    def _get(self, key: str) -> bytes:
        if self.is_local:
            return self._local_path(key).read_bytes()
        response = self.client.get_object(Bucket=self.bucket, Key=key)
        return response["Body"].read()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def upload(
        self,
        data: bytes,
        filename: str | None,
        content_type: str | None,
        owner_scope: str,
    ) -> str:
        """Store *data* under a fresh key scoped by *owner_scope* and return the key."""
        key = self.generate_key(filename, owner_scope)
        try:
            await run_in_threadpool(self._put, key, data, content_type)
        except (BotoCoreError, ClientError, OSError) as exc:
            raise StorageError(f"Upload failed for {key}") from exc
        logger.info("Stored image %s (%d bytes)", key, len(data))
        return key

    async def fetch(self, key: str) -> bytes:
        try:
            return await run_in_threadpool(self._get, key)
        except (BotoCoreError, ClientError, OSError) as exc:
            raise StorageError(f"Fetch failed for {key}") from exc


storage = ImageStorage()
