"""Tests for the OCR HTTP client."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from ocr_client import OCR_FAILURE_NOTICE, OCRClient, OCRError


def ndjson(*events: dict) -> bytes:
    return "".join(json.dumps(e) + "\n" for e in events).encode()


def recognize(handler, progress: list[float] | None = None) -> str:
    async def scenario() -> str:
        client = OCRClient(base_url="http://ocr.test", transport=httpx.MockTransport(handler))
        try:
            return await client.recognize(
                b"\x89PNG fake",
                filename="page.png",
                on_progress=progress.append if progress is not None else None,
            )
        finally:
            await client.close()

    return asyncio.run(scenario())


def test_recognize_reports_progress_and_returns_text() -> None:
    seen_paths = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen_paths.append(request.url.path)
        body = ndjson(
            {"status": "loading language traineddata", "progress": 0.5},
            {"status": "recognizing", "progress": 0.25},
            {"status": "recognizing", "progress": 1.5},
            {"text": "Hello from paper."},
        )
        return httpx.Response(200, content=body)

    progress: list[float] = []
    assert recognize(handler, progress) == "Hello from paper."
    assert progress == [0.25, 1.0]
    assert seen_paths == ["/recognize"]


def test_server_error_raises_user_notice() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, content=b"boom")

    with pytest.raises(OCRError) as excinfo:
        recognize(handler)
    assert str(excinfo.value) == OCR_FAILURE_NOTICE


def test_unreachable_server_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    with pytest.raises(OCRError):
        recognize(handler)


def test_error_event_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=ndjson({"error": "no text found"}))

    with pytest.raises(OCRError, match="no text found"):
        recognize(handler)


def test_stream_without_text_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=ndjson({"status": "recognizing", "progress": 0.3}))

    with pytest.raises(OCRError):
        recognize(handler)


def test_malformed_stream_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"not json\n")

    with pytest.raises(OCRError):
        recognize(handler)
