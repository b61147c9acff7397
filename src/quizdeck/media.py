"""Media upload — pushes question images/videos to an external asset host."""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import AsyncIterator, Callable

import httpx

logger = logging.getLogger(__name__)

MEDIA_BASE_URL = os.environ.get("MEDIA_BASE_URL", "https://api.cloudinary.com/v1_1")
MEDIA_CLOUD_NAME = os.environ.get("MEDIA_CLOUD_NAME", "")
MEDIA_UPLOAD_PRESET = os.environ.get("MEDIA_UPLOAD_PRESET", "")

CHUNK_SIZE = 64 * 1024

ProgressCallback = Callable[[int, int], None]


class MediaUploadError(Exception):
    """The asset host rejected the upload or could not be reached."""


class UploadPendingError(Exception):
    """An upload is still outstanding for the quiz being edited."""


class MediaUploader:
    """Unsigned uploads to a Cloudinary-compatible endpoint."""

    def __init__(
        self,
        cloud_name: str = MEDIA_CLOUD_NAME,
        upload_preset: str = MEDIA_UPLOAD_PRESET,
        base_url: str = MEDIA_BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 60.0,
    ) -> None:
        self.cloud_name = cloud_name
        self.upload_preset = upload_preset
        self.base_url = base_url.rstrip("/")
        self._transport = transport
        self._timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.cloud_name and self.upload_preset)

    def endpoint(self, content_type: str) -> str:
        kind = "video" if content_type.startswith("video") else "image"
        return f"{self.base_url}/{self.cloud_name}/{kind}/upload"

    async def upload(
        self,
        filename: str,
        content: bytes,
        content_type: str,
        on_progress: ProgressCallback | None = None,
    ) -> str:
        """Upload a file and return its public URL."""
        if not self.configured:
            raise MediaUploadError("Media upload is not configured")

        url = self.endpoint(content_type)
        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            # Encode the multipart body up front so progress can be reported
            # against a known total while it is streamed out.
            prepared = client.build_request(
                "POST",
                url,
                data={"upload_preset": self.upload_preset},
                files={"file": (filename, content, content_type)},
            )
            body = prepared.read()
            request = client.build_request(
                "POST",
                url,
                headers=prepared.headers,
                content=_stream(body, on_progress),
            )
            try:
                resp = await client.send(request)
            except httpx.HTTPError as e:
                logger.error("Media upload to %s failed: %s", url, e)
                raise MediaUploadError("Upload error") from e

        if resp.status_code != 200:
            logger.error("Media upload rejected (%d): %s", resp.status_code, resp.text)
            raise MediaUploadError("Upload failed")
        try:
            secure_url = resp.json()["secure_url"]
        except (ValueError, KeyError) as e:
            raise MediaUploadError("Upload response did not include a URL") from e

        logger.info("Uploaded %s (%d bytes) to %s", filename, len(content), secure_url)
        return secure_url


async def _stream(
    body: bytes, on_progress: ProgressCallback | None
) -> AsyncIterator[bytes]:
    total = len(body)
    sent = 0
    if on_progress:
        on_progress(0, total)
    while sent < total:
        chunk = body[sent : sent + CHUNK_SIZE]
        sent += len(chunk)
        yield chunk
        if on_progress:
            on_progress(sent, total)


class UploadTracker:
    """Tracks the one outstanding upload slot per quiz being edited.

    While a slot is held, saving that quiz is blocked.
    """

    def __init__(self) -> None:
        self._pending: dict[str, int] = {}
        self._lock = threading.Lock()

    def begin(self, quiz_key: str, question_index: int) -> None:
        with self._lock:
            if quiz_key in self._pending:
                raise UploadPendingError("Please wait until upload completes.")
            self._pending[quiz_key] = question_index

    def release(self, quiz_key: str) -> None:
        with self._lock:
            self._pending.pop(quiz_key, None)

    def pending(self, quiz_key: str) -> int | None:
        with self._lock:
            return self._pending.get(quiz_key)

    def ensure_idle(self, quiz_key: str) -> None:
        if self.pending(quiz_key) is not None:
            raise UploadPendingError("Please wait until upload completes.")
