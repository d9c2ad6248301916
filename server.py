# ABOUTME: FastAPI server exposing the RSVP speed-reading session on port 8767
# ABOUTME: Word parts, pace, loop label and playback control over HTTP; audio upload and OCR import
# ABOUTME: Restricted to localhost and Tailscale IPs (100.64.0.0/10)
from __future__ import annotations

import ipaddress
import logging
import shutil
from pathlib import Path

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

import store
from ocr_client import OCRClient, OCRError
from player import MediaError
from session import ReaderSession

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("speed-reader")

DATA_DIR = Path("data")
UPLOAD_DIR = DATA_DIR / "uploads"
MAX_UPLOAD_BYTES = 100 * 1024 * 1024  # 100 MB
MAX_IMAGE_BYTES = 20 * 1024 * 1024

ALLOWED_AUDIO_EXTENSIONS = {".mp3", ".wav", ".m4a", ".m4b", ".ogg", ".flac", ".aac"}
ALLOWED_IMAGE_TYPES = {"image/png", "image/jpeg", "image/webp", "image/bmp", "image/tiff", "image/gif"}

ALLOWED_NETWORKS = [
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("100.64.0.0/10"),
]

app = FastAPI(title="Speed Reader API", version="0.1.0")

_session: ReaderSession | None = None


class SettingsUpdate(BaseModel):
    """Partial settings update; omitted fields are left alone."""
    base_wpm: int | None = None
    ramp_enabled: bool | None = None
    start_wpm: int | None = None
    end_wpm: int | None = None
    loop_enabled: bool | None = None
    max_loops: int | None = None
    auto_scale: bool | None = None
    manual_px: int | None = None
    viewport_width_px: float | None = Field(default=None, gt=0)
    volume: float | None = None


def get_session() -> ReaderSession:
    if _session is None:
        raise HTTPException(503, "Session not ready")
    return _session


@app.middleware("http")
async def restrict_ip(request: Request, call_next):
    """Reject requests not from localhost or Tailscale."""
    try:
        client_ip = ipaddress.ip_address(request.client.host)
    except (AttributeError, ValueError):
        client_ip = None
    if client_ip is None or not any(client_ip in network for network in ALLOWED_NETWORKS):
        logger.warning("Blocked request from %s", client_ip)
        return JSONResponse(status_code=403, content={"detail": "Forbidden"})
    return await call_next(request)


@app.on_event("startup")
async def startup():
    global _session
    UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    await store.init_db()
    _session = await ReaderSession.open(ocr=OCRClient())
    logger.info("Speed Reader API started on port 8767")


@app.on_event("shutdown")
async def shutdown():
    global _session
    if _session is not None:
        await _session.close()
        _session = None


@app.get("/health")
async def health():
    """Service health + OCR dependency check."""
    ocr = OCRClient()
    ocr_status = "unknown"
    ocr_detail = None
    try:
        ocr_health = await ocr.health_check()
        ocr_status = ocr_health.get("status", "unknown")
    except Exception as e:
        ocr_status = "unreachable"
        ocr_detail = str(e)
    finally:
        await ocr.close()

    # Reading works without OCR; only scanning is degraded
    return {
        "status": "ok" if ocr_status == "ok" else "degraded",
        "ocr_server": {
            "status": ocr_status,
            "error": ocr_detail,
        },
        "max_upload_bytes": MAX_UPLOAD_BYTES,
        "audio_formats": sorted(ALLOWED_AUDIO_EXTENSIONS),
    }


@app.get("/state")
async def get_state():
    return get_session().view()


@app.post("/playback/toggle")
async def toggle_playback():
    session = get_session()
    session.toggle()
    return session.view()


@app.post("/playback/pause")
async def pause_playback():
    session = get_session()
    session.pause()
    return session.view()


@app.post("/playback/launch")
async def launch_playback():
    """Restart from the first word and first loop, then play."""
    session = get_session()
    session.launch()
    return session.view()


@app.put("/text")
async def put_text(text: str = Form(...)):
    session = get_session()
    await session.set_text(text)
    logger.info("Document replaced: %d words", len(session.document))
    return session.view()


@app.patch("/settings")
async def patch_settings(update: SettingsUpdate):
    session = get_session()
    changes = update.model_dump(exclude_none=True)

    setters = {
        "base_wpm": session.set_base_wpm,
        "ramp_enabled": session.set_ramp_enabled,
        "start_wpm": session.set_start_wpm,
        "end_wpm": session.set_end_wpm,
        "loop_enabled": session.set_loop_enabled,
        "max_loops": session.set_max_loops,
        "auto_scale": session.set_auto_scale,
        "manual_px": session.set_manual_px,
        "viewport_width_px": session.set_viewport_width,
    }
    for field, value in changes.items():
        if field == "volume":
            await session.set_volume(value)
        else:
            setters[field](value)

    return session.view()


@app.post("/audio")
async def upload_audio(file: UploadFile = File(...)):
    """Attach an audio track, replacing the previous one."""
    session = get_session()
    filename = Path(file.filename or "audio.mp3").name
    suffix = Path(filename).suffix.lower()
    if suffix not in ALLOWED_AUDIO_EXTENSIONS:
        raise HTTPException(400, f"Unsupported audio type: {suffix}. Use: {sorted(ALLOWED_AUDIO_EXTENSIONS)}")

    content = await file.read()
    if len(content) > MAX_UPLOAD_BYTES:
        raise HTTPException(400, f"File too large: {len(content)} bytes (max {MAX_UPLOAD_BYTES})")

    # Only one track is kept on disk; the new one is staged until it decodes
    audio_dir = UPLOAD_DIR / "audio"
    incoming_dir = UPLOAD_DIR / "audio.incoming"
    if incoming_dir.exists():
        shutil.rmtree(incoming_dir)
    incoming_dir.mkdir(parents=True)
    (incoming_dir / filename).write_bytes(content)

    try:
        session.attach_audio(incoming_dir / filename, filename)
    except MediaError as e:
        shutil.rmtree(incoming_dir)
        logger.warning("Rejected audio upload %s: %s", filename, e)
        raise HTTPException(400, str(e))

    if audio_dir.exists():
        shutil.rmtree(audio_dir)
    incoming_dir.rename(audio_dir)

    return session.view()


@app.delete("/audio")
async def delete_audio():
    session = get_session()
    session.detach_audio()
    audio_dir = UPLOAD_DIR / "audio"
    if audio_dir.exists():
        shutil.rmtree(audio_dir)
    return session.view()


@app.post("/scan")
async def scan_image(file: UploadFile = File(...)):
    """OCR a photographed page into the document."""
    session = get_session()
    content_type = file.content_type or "application/octet-stream"
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(400, f"Unsupported image type: {content_type}")

    content = await file.read()
    if len(content) > MAX_IMAGE_BYTES:
        raise HTTPException(400, f"Image too large: {len(content)} bytes (max {MAX_IMAGE_BYTES})")

    try:
        await session.scan(content, file.filename or "page.png", content_type)
    except OCRError as e:
        raise HTTPException(502, str(e))

    return session.view()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8767)
