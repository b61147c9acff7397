"""Tests for the media upload collaborator."""

import asyncio

import httpx
import pytest

from quizdeck.media import MediaUploader, MediaUploadError, UploadPendingError, UploadTracker


def make_uploader(handler) -> MediaUploader:
    return MediaUploader(
        cloud_name="demo",
        upload_preset="quizzes",
        base_url="https://upload.test/v1_1",
        transport=httpx.MockTransport(handler),
    )


class TestMediaUploader:
    def test_upload_returns_secure_url(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = request.content
            return httpx.Response(200, json={"secure_url": "https://cdn.test/a.png"})

        progress = []
        uploader = make_uploader(handler)
        url = asyncio.run(
            uploader.upload(
                "a.png", b"\x89PNG" * 100, "image/png", on_progress=lambda s, t: progress.append((s, t))
            )
        )
        assert url == "https://cdn.test/a.png"
        assert seen["url"] == "https://upload.test/v1_1/demo/image/upload"
        assert b'name="upload_preset"' in seen["body"]
        assert b"quizzes" in seen["body"]
        assert progress[0][0] == 0
        assert progress[-1][0] == progress[-1][1] == len(seen["body"])

    def test_video_endpoint(self):
        uploader = make_uploader(lambda r: httpx.Response(200))
        assert uploader.endpoint("video/mp4").endswith("/demo/video/upload")
        assert uploader.endpoint("image/jpeg").endswith("/demo/image/upload")

    def test_rejected_upload(self):
        uploader = make_uploader(lambda r: httpx.Response(400, json={"error": "bad"}))
        with pytest.raises(MediaUploadError, match="Upload failed"):
            asyncio.run(uploader.upload("a.png", b"data", "image/png"))

    def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("unreachable")

        with pytest.raises(MediaUploadError, match="Upload error"):
            asyncio.run(make_uploader(handler).upload("a.png", b"data", "image/png"))

    def test_unconfigured(self):
        uploader = MediaUploader(cloud_name="", upload_preset="")
        assert not uploader.configured
        with pytest.raises(MediaUploadError):
            asyncio.run(uploader.upload("a.png", b"data", "image/png"))


class TestUploadTracker:
    def test_pending_upload_blocks_save(self):
        tracker = UploadTracker()
        tracker.ensure_idle("quiz1")
        tracker.begin("quiz1", 2)
        assert tracker.pending("quiz1") == 2
        with pytest.raises(UploadPendingError):
            tracker.ensure_idle("quiz1")
        with pytest.raises(UploadPendingError):
            tracker.begin("quiz1", 3)
        tracker.ensure_idle("quiz2")

    def test_release_allows_retry(self):
        tracker = UploadTracker()
        tracker.begin("quiz1", 0)
        tracker.release("quiz1")
        tracker.ensure_idle("quiz1")
        tracker.begin("quiz1", 0)
