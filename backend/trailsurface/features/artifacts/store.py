"""
Uploaded file storage.

Keeps the original GPX upload next to its ingestion job so it can be
handed to route persistence later, and removed when the job is cancelled.

Backends:
- LocalArtifactStore: files under a directory, with age-based cleanup
- S3ArtifactStore: objects in an S3 bucket (boto3)
"""

import asyncio
import logging
import re
import shutil
import time
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

# Key prefix for uploaded tracks
ARTIFACT_PREFIX = "gpx"

GPX_CONTENT_TYPE = "application/gpx+xml"


def make_artifact_name(filename: Optional[str]) -> str:
    """Unique, path-safe object name that keeps the original file name."""
    base = re.sub(r"[^A-Za-z0-9._-]+", "-", filename or "upload.gpx").strip("-.")
    return f"{uuid.uuid4().hex[:12]}-{base or 'upload.gpx'}"


class ArtifactStore(ABC):
    """Abstract storage for uploaded files."""

    @abstractmethod
    async def save(self, name: str, content: bytes) -> str:
        """Store content. Returns the artifact reference."""
        ...

    @abstractmethod
    async def delete(self, ref: str) -> bool:
        """Remove an artifact. Returns False if it did not exist."""
        ...

    async def cleanup_expired(self, max_age_seconds: float) -> int:
        """Remove artifacts older than max_age_seconds. Returns count removed."""
        return 0


class LocalArtifactStore(ArtifactStore):
    """Stores uploads as files under base_dir/gpx/."""

    def __init__(self, base_dir: str):
        self._base_dir = Path(base_dir) / ARTIFACT_PREFIX
        self._base_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, ref: str) -> Path:
        path = (self._base_dir / Path(ref).name).resolve()
        if path.parent != self._base_dir.resolve():
            raise ValueError(f"Invalid artifact reference: {ref}")
        return path

    async def save(self, name: str, content: bytes) -> str:
        path = self._path(name)
        # Disk I/O runs in a worker thread, like the S3 calls
        await asyncio.to_thread(path.write_bytes, content)
        logger.debug(f"Saved artifact {path} ({len(content)} bytes)")
        return path.name

    async def delete(self, ref: str) -> bool:
        path = self._path(ref)
        removed = await asyncio.to_thread(self._remove, path)
        if removed:
            logger.debug(f"Deleted artifact {path}")
        return removed

    def exists(self, ref: str) -> bool:
        return self._path(ref).exists()

    async def cleanup_expired(self, max_age_seconds: float) -> int:
        removed = await asyncio.to_thread(self._remove_older_than, max_age_seconds)
        if removed:
            logger.info(f"Removed {removed} expired artifacts")
        return removed

    @staticmethod
    def _remove(path: Path) -> bool:
        if not path.exists():
            return False
        path.unlink()
        return True

    def _remove_older_than(self, max_age_seconds: float) -> int:
        now = time.time()
        removed = 0
        for entry in self._base_dir.iterdir():
            if now - entry.stat().st_mtime <= max_age_seconds:
                continue
            if entry.is_dir():
                shutil.rmtree(entry, ignore_errors=True)
            else:
                entry.unlink(missing_ok=True)
            removed += 1
        return removed


class S3ArtifactStore(ArtifactStore):
    """Stores uploads in an S3 bucket under gpx/."""

    def __init__(self, bucket: str, region: str = "ap-southeast-2", client=None) -> None:
        """
        Initialize S3 artifact storage.

        Args:
            bucket: S3 bucket name
            region: AWS region for the bucket
            client: Preconfigured boto3 S3 client (tests, custom endpoints)
        """
        self._bucket = bucket
        self._region = region
        self._s3_client = client or boto3.client("s3", region_name=region)

    @staticmethod
    def _key(name: str) -> str:
        if name.startswith(f"{ARTIFACT_PREFIX}/"):
            return name
        return f"{ARTIFACT_PREFIX}/{name}"

    async def save(self, name: str, content: bytes) -> str:
        key = self._key(name)
        # boto3 is blocking, keep it off the event loop
        await asyncio.to_thread(
            self._s3_client.put_object,
            Bucket=self._bucket,
            Key=key,
            Body=content,
            ContentType=GPX_CONTENT_TYPE,
        )
        logger.debug(f"Uploaded artifact s3://{self._bucket}/{key}")
        return key

    async def delete(self, ref: str) -> bool:
        key = self._key(ref)
        try:
            await asyncio.to_thread(
                self._s3_client.delete_object,
                Bucket=self._bucket,
                Key=key,
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in ("NoSuchKey", "404"):
                return False
            raise
        logger.debug(f"Deleted artifact s3://{self._bucket}/{key}")
        return True
