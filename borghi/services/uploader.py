"""Upload functions handed to the queue drain.

The drain only needs an ``async (CaptureRecord) -> None`` that raises on
failure; ``HttpCaptureUploader`` is the real one, ``simulated_upload`` stands
in while no backend endpoint is configured.
"""

from __future__ import annotations

import asyncio
import logging
import mimetypes
from pathlib import Path

import httpx

from borghi.contracts.capture import CaptureRecord

logger = logging.getLogger(__name__)

SIMULATED_UPLOAD_DELAY_S = 0.4


class UploadError(Exception):
    """Raised when a capture could not be delivered to the backend."""


class HttpCaptureUploader:
    """Async multipart uploader for queued captures."""

    def __init__(
        self,
        base_url: str,
        http_client: httpx.AsyncClient | None = None,
        token: str | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._client = http_client or httpx.AsyncClient(timeout=60.0)
        self._token = token

    async def __call__(self, record: CaptureRecord) -> None:
        await self.upload(record)

    async def upload(self, record: CaptureRecord) -> None:
        path = Path(record.asset_uri)
        try:
            content = await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise UploadError(f"Asset unreadable: {path}") from exc

        mime = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        metadata = record.to_document()
        metadata.pop("uri", None)
        metadata.pop("lastError", None)
        headers = {"Authorization": f"Bearer {self._token}"} if self._token else None

        try:
            resp = await self._client.post(
                f"{self._base_url}/captures",
                data={k: str(v) for k, v in metadata.items()},
                files={"photo": (path.name, content, mime)},
                headers=headers,
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise UploadError(f"Server rejected capture {record.id}: HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise UploadError(f"Network error uploading capture {record.id}: {exc}") from exc

        logger.debug("Uploaded capture %s (%d bytes)", record.id, len(content))

    async def aclose(self) -> None:
        await self._client.aclose()


async def simulated_upload(record: CaptureRecord) -> None:
    """Pretend to upload; always succeeds after a short delay."""
    await asyncio.sleep(SIMULATED_UPLOAD_DELAY_S)
    logger.debug("Simulated upload of capture %s", record.id)
