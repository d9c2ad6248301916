# ABOUTME: Async HTTP client for the OCR server that turns a photographed page into raw text
# ABOUTME: Streams NDJSON progress events and reports the "recognizing" fraction to a callback
from __future__ import annotations

import json
import logging
from typing import Callable

import httpx

logger = logging.getLogger("speed-reader.ocr")

OCR_BASE_URL = "http://127.0.0.1:8884"
REQUEST_TIMEOUT = 300.0
OCR_LANGUAGE = "eng"

# Shown to the user when recognition fails for any reason
OCR_FAILURE_NOTICE = "Note: Scanner requires an initial online load to cache its recognition models."


class OCRError(Exception):
    """Recognition failed; the message is a one-line user notice."""

    def __init__(self, message: str = OCR_FAILURE_NOTICE):
        super().__init__(message)


class OCRClient:
    """Async client for the OCR server."""

    def __init__(self, base_url: str = OCR_BASE_URL, transport: httpx.AsyncBaseTransport | None = None):
        self.base_url = base_url
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(REQUEST_TIMEOUT, connect=10.0),
                transport=self._transport,
            )
        return self._client

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def recognize(
        self,
        image: bytes,
        filename: str = "page.png",
        content_type: str = "image/png",
        on_progress: Callable[[float], None] | None = None,
    ) -> str:
        """Recognize text in an image. Returns the raw text.

        The server answers with one JSON object per line: progress events
        ``{"status": "recognizing", "progress": 0.42}`` and finally
        ``{"text": "..."}``. An ``{"error": "..."}`` line aborts recognition.
        """
        try:
            client = await self._get_client()
            async with client.stream(
                "POST",
                "/recognize",
                files={"image": (filename, image, content_type)},
                data={"language": OCR_LANGUAGE},
            ) as resp:
                resp.raise_for_status()
                async for line in resp.aiter_lines():
                    if not line.strip():
                        continue
                    event = json.loads(line)
                    if "error" in event:
                        raise OCRError(f"Recognition failed: {event['error']}")
                    if "text" in event:
                        return event["text"]
                    if event.get("status") == "recognizing" and on_progress is not None:
                        progress = float(event.get("progress", 0.0))
                        on_progress(min(max(progress, 0.0), 1.0))
        except httpx.HTTPError as e:
            logger.warning("OCR request failed: %s", e)
            raise OCRError() from e
        except (ValueError, TypeError) as e:
            logger.warning("Malformed OCR response: %s", e)
            raise OCRError() from e

        logger.warning("OCR stream ended without text")
        raise OCRError()

    async def health_check(self) -> dict:
        """Check OCR server health."""
        client = await self._get_client()
        resp = await client.get("/health", timeout=5.0)
        resp.raise_for_status()
        return resp.json()
