# takes/services/storage.py
"""Blob storage for uploaded screenshots.

Backends are synchronous (boto3 is); async callers go through
``asyncio.to_thread``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from takes.core.config import Settings

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised when the blob backend failed."""


class BlobExistsError(StorageError):
    """Raised by a non-overwriting put when the key is already taken."""


class BlobStore(ABC):
    """Key/value blob storage with public URLs."""

    @abstractmethod
    def put(self, key: str, data: bytes, *, content_type: str) -> None:
        """Store ``data`` under ``key``; never overwrites an existing blob."""

    @abstractmethod
    def get(self, key: str) -> bytes | None:
        """Return the blob or None when it does not exist."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove the blob; deleting a missing key is not an error."""

    @abstractmethod
    def public_url(self, key: str) -> str:
        """Stable public reference for ``key``."""


class LocalBlobStore(BlobStore):
    """Filesystem storage, served read-only by the app under /media."""

    def __init__(self, base_path: str | Path, *, public_base_url: str = "/media") -> None:
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.public_base_url = public_base_url.rstrip("/")

    def _full_path(self, key: str) -> Path:
        path = (self.base_path / key).resolve()
        if not path.is_relative_to(self.base_path.resolve()):
            raise StorageError(f"invalid key: {key!r}")
        return path

    def put(self, key: str, data: bytes, *, content_type: str) -> None:
        path = self._full_path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # "x" refuses to overwrite
            with open(path, "xb") as fh:
                fh.write(data)
        except FileExistsError as exc:
            raise BlobExistsError(key) from exc
        except OSError as exc:
            raise StorageError(f"local write failed for {key}: {exc}") from exc
        logger.info("blob stored: %s (%d bytes)", key, len(data))

    def get(self, key: str) -> bytes | None:
        path = self._full_path(key)
        if not path.is_file():
            return None
        return path.read_bytes()

    def delete(self, key: str) -> None:
        path = self._full_path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"local delete failed for {key}: {exc}") from exc
        logger.info("blob deleted: %s", key)

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"


class S3BlobStore(BlobStore):
    """S3 (or S3-compatible) bucket storage."""

    def __init__(
        self,
        bucket: str,
        *,
        region: str,
        endpoint_url: str | None = None,
        public_base_url: str | None = None,
        client=None,
    ) -> None:
        self.bucket = bucket
        self.region = region
        self.s3_client = client or boto3.client(
            "s3", region_name=region, endpoint_url=endpoint_url
        )
        self.public_base_url = (
            public_base_url or f"https://{bucket}.s3.{region}.amazonaws.com"
        ).rstrip("/")

    def put(self, key: str, data: bytes, *, content_type: str) -> None:
        try:
            self.s3_client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                IfNoneMatch="*",
            )
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "")
            if code in {"PreconditionFailed", "ConditionalRequestConflict"}:
                raise BlobExistsError(key) from exc
            raise StorageError(f"S3 upload failed for {key}: {code or exc}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"S3 upload failed for {key}: {exc}") from exc
        logger.info("blob uploaded to s3://%s/%s", self.bucket, key)

    def get(self, key: str) -> bytes | None:
        try:
            r = self.s3_client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code")
            if code in {"NoSuchKey", "404", "NotFound"}:
                return None
            raise StorageError(f"S3 get failed for {key}: {code}") from exc
        return r["Body"].read()

    def delete(self, key: str) -> None:
        try:
            self.s3_client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"S3 delete failed for {key}: {exc}") from exc
        logger.info("blob deleted from s3://%s/%s", self.bucket, key)

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"


def build_blob_store(settings: Settings) -> BlobStore:
    backend = settings.storage_backend.lower()
    if backend == "s3":
        if not settings.s3_bucket:
            raise ValueError("S3_BUCKET is required when STORAGE_BACKEND=s3")
        return S3BlobStore(
            settings.s3_bucket,
            region=settings.s3_region,
            endpoint_url=settings.s3_endpoint_url,
            public_base_url=settings.s3_public_base_url,
        )
    if backend == "local":
        return LocalBlobStore(
            settings.local_storage_path, public_base_url=settings.public_media_base_url
        )
    raise ValueError(f"unknown STORAGE_BACKEND: {settings.storage_backend!r}")
