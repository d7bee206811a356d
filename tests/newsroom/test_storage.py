from __future__ import annotations

from pathlib import Path

import boto3
import pytest
from botocore.stub import Stubber

from newsroom.services.storage import (
    CACHE_CONTROL,
    LocalObjectStore,
    S3ObjectStore,
    StorageError,
    StorageUploader,
    build_object_name,
    extension_for,
)
from tests.factories import PNG_B64, PNG_BYTES


@pytest.mark.parametrize(
    "content_type,ext",
    [("image/png", "png"), ("image/webp", "webp"), ("image/svg+xml", "svg"), ("image/jpeg; q=1", "jpeg"), ("", "png")],
)
def test_extension_for(content_type, ext):
    assert extension_for(content_type) == ext


def test_object_names_are_unique_per_call():
    first = build_object_name("my-article", "image/png")
    second = build_object_name("my-article", "image/png")
    assert first.startswith("my-article-") and first.endswith(".png")
    assert first != second


def test_local_store_writes_and_returns_public_url(tmp_path: Path):
    store = LocalObjectStore(tmp_path, "article-images", "https://cdn.example.com/storage/")

    url = store.put("a.png", PNG_BYTES, "image/png")

    assert url == "https://cdn.example.com/storage/article-images/a.png"
    assert (tmp_path / "article-images" / "a.png").read_bytes() == PNG_BYTES


def test_local_store_never_overwrites(tmp_path: Path):
    store = LocalObjectStore(tmp_path, "article-images", "https://cdn.example.com")
    store.put("a.png", PNG_BYTES, "image/png")

    with pytest.raises(StorageError):
        store.put("a.png", b"other", "image/png")


def test_uploader_decodes_base64(tmp_path: Path):
    uploader = StorageUploader(LocalObjectStore(tmp_path, "imgs", "https://cdn.example.com"))

    url = uploader.upload_base64(PNG_B64, "image/png", "solar-farms")

    assert url is not None and url.startswith("https://cdn.example.com/imgs/solar-farms-")
    stored = list((tmp_path / "imgs").iterdir())
    assert len(stored) == 1 and stored[0].read_bytes() == PNG_BYTES


@pytest.mark.parametrize("payload", ["***not base64***", ""])
def test_uploader_rejects_bad_payloads(tmp_path: Path, payload):
    uploader = StorageUploader(LocalObjectStore(tmp_path, "imgs", "https://cdn.example.com"))

    assert uploader.upload_base64(payload, "image/png", "slug") is None
    assert not (tmp_path / "imgs").exists()


def test_uploader_absorbs_store_failures():
    class _Broken:
        def put(self, name, data, content_type):
            raise StorageError("disk full")

    assert StorageUploader(_Broken()).upload(PNG_BYTES, "image/png", "slug") is None


def test_s3_store_puts_object_with_cache_headers():
    client = boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="test",
        aws_secret_access_key="test",
    )
    store = S3ObjectStore(client, "article-images", "https://cdn.example.com")

    with Stubber(client) as stubber:
        stubber.add_response(
            "put_object",
            {"ETag": '"abc"'},
            {
                "Bucket": "article-images",
                "Key": "a.webp",
                "Body": PNG_BYTES,
                "ContentType": "image/webp",
                "CacheControl": CACHE_CONTROL,
            },
        )
        url = store.put("a.webp", PNG_BYTES, "image/webp")
        stubber.assert_no_pending_responses()

    assert url == "https://cdn.example.com/a.webp"


def test_s3_store_wraps_client_errors():
    client = boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="test",
        aws_secret_access_key="test",
    )
    store = S3ObjectStore(client, "article-images", "https://cdn.example.com")

    with Stubber(client) as stubber:
        stubber.add_client_error("put_object", service_error_code="AccessDenied", http_status_code=403)
        with pytest.raises(StorageError):
            store.put("a.webp", PNG_BYTES, "image/webp")
