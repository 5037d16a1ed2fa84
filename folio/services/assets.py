"""
Cover-image storage on S3 plus an in-memory double for tests.

Keys are a single path segment (``<epoch-millis>-<hex>.<ext>``) so the
key of any stored asset can be recovered from its public URL.
"""
from __future__ import annotations

import logging
import re
import secrets
import time
from dataclasses import dataclass, field
from typing import Protocol
from urllib.parse import unquote, urlparse

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from starlette.concurrency import run_in_threadpool

from folio.config import Settings
from folio.errors import UpstreamError

logger = logging.getLogger(__name__)

_EXT_RE = re.compile(r"\.([a-zA-Z0-9]{1,10})$")
_MISSING_KEY_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


@dataclass(frozen=True)
class CoverUpload:
    data: bytes
    filename: str
    content_type: str


def make_key(filename: str, now_ms: int | None = None) -> str:
    """Return a collision-resistant key that keeps the upload's extension."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    stem = f"{now_ms}-{secrets.token_hex(4)}"
    m = _EXT_RE.search((filename or "").strip())
    if m:
        return f"{stem}.{m.group(1).lower()}"
    return stem


def key_from_url(url: str) -> str:
    """Storage key of the asset behind *url*: its final path segment."""
    path = urlparse(url).path
    return unquote(path.rsplit("/", 1)[-1])


class AssetStore(Protocol):
    """Operations the content service needs from object storage."""

    async def upload(self, upload: CoverUpload) -> str:
        ...

    async def delete(self, key: str) -> None:
        ...


class S3AssetStore:
    """Public-read cover storage in a single S3 bucket."""

    def __init__(self, bucket: str, client) -> None:
        self.bucket = bucket
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3AssetStore":
        client = boto3.client(
            "s3",
            region_name=settings.S3_REGION,
            aws_access_key_id=settings.S3_ACCESS_KEY or None,
            aws_secret_access_key=settings.S3_SECRET_ACCESS_KEY or None,
        )
        return cls(settings.S3_BUCKET, client)

    def public_url(self, key: str) -> str:
        return f"https://{self.bucket}.s3.amazonaws.com/{key}"

    async def upload(self, upload: CoverUpload) -> str:
        key = make_key(upload.filename)
        try:
            await run_in_threadpool(
                self._client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=upload.data,
                ContentType=upload.content_type,
                ACL="public-read",
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("S3 upload of %r failed: %s", upload.filename, exc)
            raise UpstreamError("Failed to store upload") from exc
        logger.info("Stored asset %s (%d bytes)", key, len(upload.data))
        return self.public_url(key)

    async def delete(self, key: str) -> None:
        try:
            await run_in_threadpool(self._client.delete_object, Bucket=self.bucket, Key=key)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in _MISSING_KEY_CODES:
                return
            raise UpstreamError("Failed to delete asset") from exc
        except BotoCoreError as exc:
            raise UpstreamError("Failed to delete asset") from exc
        logger.info("Deleted asset %s", key)

    def close(self) -> None:
        self._client.close()


@dataclass
class InMemoryAssetStore:
    """Test double for asset storage."""

    base_url: str = "https://assets.example.test"
    objects: dict[str, CoverUpload] = field(default_factory=dict)
    deleted: list[str] = field(default_factory=list)
    fail_deletes: bool = False

    async def upload(self, upload: CoverUpload) -> str:
        key = make_key(upload.filename)
        self.objects[key] = upload
        return f"{self.base_url}/{key}"

    async def delete(self, key: str) -> None:
        self.deleted.append(key)
        if self.fail_deletes:
            raise UpstreamError("Failed to delete asset")
        self.objects.pop(key, None)
