"""Object storage for generated images (local filesystem or S3)."""

from __future__ import annotations

import base64
import binascii
import time
from pathlib import Path
from typing import Any, Optional, Protocol

from newsroom.settings import Settings
from newsroom.utils.logging import get_logger

logger = get_logger(__name__)

CACHE_CONTROL = "public, max-age=31536000"


class StorageError(Exception):
    """Raised by object store backends when a write fails."""


class ObjectStore(Protocol):
    def put(self, name: str, data: bytes, content_type: str) -> str: ...  # returns public URL


class LocalObjectStore:
    """Write-once files under ``root/bucket`` served from ``public_base_url``."""

    def __init__(self, root: str | Path, bucket: str, public_base_url: str) -> None:
        self._dir = Path(root) / bucket
        self._bucket = bucket
        self._public_base_url = public_base_url.rstrip("/")

    def put(self, name: str, data: bytes, content_type: str) -> str:
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            with open(self._dir / name, "xb") as fh:
                fh.write(data)
        except OSError as exc:
            raise StorageError(f"local write failed for {name}: {exc}") from exc
        return f"{self._public_base_url}/{self._bucket}/{name}"


class S3ObjectStore:
    """S3-compatible bucket accessed through boto3."""

    def __init__(self, client: Any, bucket: str, public_base_url: str) -> None:
        self._client = client
        self._bucket = bucket
        self._public_base_url = public_base_url.rstrip("/")

    def put(self, name: str, data: bytes, content_type: str) -> str:
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            self._client.put_object(
                Bucket=self._bucket,
                Key=name,
                Body=data,
                ContentType=content_type,
                CacheControl=CACHE_CONTROL,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"s3 upload failed for {name}: {exc}") from exc
        return f"{self._public_base_url}/{name}"


def build_object_store(settings: Settings) -> ObjectStore:
    if settings.storage_backend == "s3":
        import boto3

        bucket = settings.s3_bucket or settings.storage_bucket
        client = boto3.client(
            "s3",
            endpoint_url=settings.s3_endpoint_url,
            region_name=settings.s3_region,
            aws_access_key_id=(
                settings.s3_access_key_id.get_secret_value() if settings.s3_access_key_id else None
            ),
            aws_secret_access_key=(
                settings.s3_secret_access_key.get_secret_value() if settings.s3_secret_access_key else None
            ),
        )
        return S3ObjectStore(client, bucket, settings.public_storage_base_url)
    return LocalObjectStore(settings.local_storage_root, settings.storage_bucket, settings.public_storage_base_url)


def extension_for(content_type: str) -> str:
    """``image/svg+xml`` -> ``svg``; unknown or malformed -> ``png``."""
    _, _, subtype = (content_type or "").partition("/")
    subtype = subtype.split(";")[0].split("+")[0].strip().lower()
    return subtype or "png"


def build_object_name(slug_hint: str, content_type: str) -> str:
    return f"{slug_hint}-{time.time_ns()}.{extension_for(content_type)}"


class StorageUploader:
    """Persist image bytes and hand back a public URL, or None on any failure."""

    def __init__(self, store: ObjectStore) -> None:
        self._store = store

    def upload(self, payload: bytes, content_type: str, slug_hint: str) -> Optional[str]:
        name = build_object_name(slug_hint, content_type)
        try:
            url = self._store.put(name, payload, content_type)
        except Exception:
            logger.exception("storage.upload_failed", extra={"object_name": name})
            return None
        logger.info("storage.uploaded", extra={"object_name": name, "bytes": len(payload), "url": url})
        return url

    def upload_base64(self, data: str, content_type: str, slug_hint: str) -> Optional[str]:
        try:
            payload = base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError):
            logger.warning("storage.invalid_base64", extra={"slug": slug_hint})
            return None
        if not payload:
            logger.warning("storage.empty_payload", extra={"slug": slug_hint})
            return None
        return self.upload(payload, content_type, slug_hint)
