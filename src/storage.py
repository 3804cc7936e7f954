import logging
from typing import BinaryIO, Optional

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from src.config import settings

logger = logging.getLogger(__name__)


class StorageException(Exception):
    """Raised when the object store rejects an operation."""


class S3StorageService:
    """Bucket-scoped object store adapter (AWS S3 or MinIO)."""

    def __init__(self):
        session = boto3.session.Session(
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
            region_name=settings.AWS_REGION or None,
        )
        self.endpoint = settings.AWS_ENDPOINT.strip()
        if self.endpoint:
            # MinIO needs path-style addressing
            self.s3 = session.client(
                "s3",
                endpoint_url=self._endpoint_url(),
                config=Config(s3={"addressing_style": "path"}, signature_version="s3v4"),
            )
        else:
            self.s3 = session.client("s3", config=Config(s3={"addressing_style": "virtual"}))
        self.bucket = settings.S3_BUCKET_NAME
        self.public_base = settings.S3_PUBLIC_URL.strip() if settings.S3_PUBLIC_URL else ""
        self._bucket_checked = False

    def _endpoint_url(self) -> str:
        if self.endpoint.startswith(("http://", "https://")):
            return self.endpoint
        scheme = "https" if settings.S3_USE_SSL else "http"
        return f"{scheme}://{self.endpoint}"

    def _ensure_bucket(self) -> None:
        if self._bucket_checked or not self.endpoint:
            return
        try:
            self.s3.head_bucket(Bucket=self.bucket)
        except ClientError:
            try:
                self.s3.create_bucket(Bucket=self.bucket)
                logger.info("Created bucket %s", self.bucket)
            except ClientError as e:
                # Another instance may have created it in the meantime
                logger.warning("Could not create bucket %s: %s", self.bucket, e)
        self._bucket_checked = True

    def public_url(self, key: str) -> str:
        if self.public_base:
            return f"{self.public_base.rstrip('/')}/{key}"
        if self.endpoint:
            return f"{self._endpoint_url().rstrip('/')}/{self.bucket}/{key}"
        region = settings.AWS_REGION or "us-east-1"
        return f"https://{self.bucket}.s3.{region}.amazonaws.com/{key}"

    def _upload(self, fileobj: BinaryIO, key: str, content_type: str) -> str:
        self._ensure_bucket()
        self.s3.upload_fileobj(
            Fileobj=fileobj,
            Bucket=self.bucket,
            Key=key,
            ExtraArgs={
                "ContentType": content_type,
                "ACL": "public-read",
                "CacheControl": "public, max-age=31536000",
            },
        )
        return self.public_url(key)

    async def upload_fileobj(self, fileobj: BinaryIO, key: str, content_type: str) -> str:
        """Upload under `key` with a public-read ACL and return the public URL."""
        try:
            return await run_in_threadpool(self._upload, fileobj, key, content_type)
        except (BotoCoreError, ClientError) as e:
            raise StorageException(f"failed to upload {key}: {e}") from e

    async def delete_object(self, key: str) -> None:
        try:
            await run_in_threadpool(self.s3.delete_object, Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise StorageException(f"failed to delete {key}: {e}") from e

    def presign(self, key: str, expires_in: Optional[int] = None) -> str:
        """Time-bounded GET URL for `key`."""
        return self.s3.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=expires_in or settings.S3_PRESIGN_EXPIRE_SECONDS,
        )

    def key_from_url(self, file_url: str) -> str:
        """
        Extract the object key from a URL produced by public_url().
        Returns "" for URLs that do not belong to this bucket.
        """
        if not file_url:
            return ""
        if self.public_base and file_url.startswith(self.public_base):
            return file_url[len(self.public_base.rstrip('/')) + 1:]
        if self.endpoint:
            prefix = f"{self._endpoint_url().rstrip('/')}/{self.bucket}/"
        else:
            region = settings.AWS_REGION or "us-east-1"
            prefix = f"https://{self.bucket}.s3.{region}.amazonaws.com/"
        if file_url.startswith(prefix):
            return file_url[len(prefix):]
        return ""


_storage_service: Optional[S3StorageService] = None


def get_storage_service() -> S3StorageService:
    """Process-wide storage adapter (boto3 clients are thread-safe)."""
    global _storage_service
    if _storage_service is None:
        _storage_service = S3StorageService()
    return _storage_service
