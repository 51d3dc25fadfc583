"""
Tests for uploaded file storage.
"""

import asyncio
import os
import time
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from trailsurface.features.artifacts import (
    LocalArtifactStore,
    S3ArtifactStore,
    make_artifact_name,
)


class TestMakeArtifactName:

    def test_keeps_original_name(self):
        assert make_artifact_name("ride.gpx").endswith("-ride.gpx")

    def test_sanitizes(self):
        name = make_artifact_name("../../etc/pass wd.gpx")
        assert "/" not in name
        assert " " not in name

    def test_unique(self):
        assert make_artifact_name("a.gpx") != make_artifact_name("a.gpx")

    def test_missing_name(self):
        assert make_artifact_name(None).endswith("upload.gpx")


class TestLocalArtifactStore:
    """Tests for LocalArtifactStore."""

    @pytest.mark.asyncio
    async def test_save_and_delete(self, tmp_path):
        store = LocalArtifactStore(str(tmp_path))

        ref = await store.save("abc-ride.gpx", b"<gpx/>")

        assert store.exists(ref)
        assert (tmp_path / "gpx" / ref).read_bytes() == b"<gpx/>"
        assert await store.delete(ref) is True
        assert await store.delete(ref) is False

    @pytest.mark.asyncio
    async def test_rejects_traversal(self, tmp_path):
        store = LocalArtifactStore(str(tmp_path))
        with pytest.raises(ValueError):
            await store.save("..", b"x")

    @pytest.mark.asyncio
    async def test_cleanup_expired(self, tmp_path):
        store = LocalArtifactStore(str(tmp_path))
        old = await store.save("old.gpx", b"old")
        fresh = await store.save("fresh.gpx", b"fresh")
        past = time.time() - 7200
        os.utime(tmp_path / "gpx" / old, (past, past))

        removed = await store.cleanup_expired(3600)

        assert removed == 1
        assert not store.exists(old)
        assert store.exists(fresh)

    @pytest.mark.asyncio
    async def test_disk_io_off_event_loop(self, tmp_path, monkeypatch):
        store = LocalArtifactStore(str(tmp_path))
        offloaded = []
        real_to_thread = asyncio.to_thread

        async def recording_to_thread(func, *args, **kwargs):
            offloaded.append(func.__name__)
            return await real_to_thread(func, *args, **kwargs)

        monkeypatch.setattr(asyncio, "to_thread", recording_to_thread)

        ref = await store.save("ride.gpx", b"<gpx/>")
        await store.delete(ref)
        await store.cleanup_expired(3600)

        assert offloaded == ["write_bytes", "_remove", "_remove_older_than"]


class TestS3ArtifactStore:
    """Tests for S3ArtifactStore with a mocked boto3 client."""

    @pytest.mark.asyncio
    async def test_save(self):
        client = MagicMock()
        store = S3ArtifactStore("tracks-bucket", client=client)

        ref = await store.save("abc-ride.gpx", b"<gpx/>")

        assert ref == "gpx/abc-ride.gpx"
        client.put_object.assert_called_once_with(
            Bucket="tracks-bucket",
            Key="gpx/abc-ride.gpx",
            Body=b"<gpx/>",
            ContentType="application/gpx+xml",
        )

    @pytest.mark.asyncio
    async def test_delete(self):
        client = MagicMock()
        store = S3ArtifactStore("tracks-bucket", client=client)

        assert await store.delete("gpx/abc-ride.gpx") is True
        client.delete_object.assert_called_once_with(
            Bucket="tracks-bucket", Key="gpx/abc-ride.gpx"
        )

    @pytest.mark.asyncio
    async def test_delete_missing(self):
        client = MagicMock()
        client.delete_object.side_effect = ClientError(
            {"Error": {"Code": "NoSuchKey", "Message": "gone"}}, "DeleteObject"
        )
        store = S3ArtifactStore("tracks-bucket", client=client)

        assert await store.delete("gpx/gone.gpx") is False

    @pytest.mark.asyncio
    async def test_delete_other_error_propagates(self):
        client = MagicMock()
        client.delete_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "no"}}, "DeleteObject"
        )
        store = S3ArtifactStore("tracks-bucket", client=client)

        with pytest.raises(ClientError):
            await store.delete("gpx/x.gpx")
