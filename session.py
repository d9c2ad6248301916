# ABOUTME: Reader session: document, policies, scheduler, audio track and display scale in one owner
# ABOUTME: Exposes the current word parts/pace/loop label and a mutator for every setting
from __future__ import annotations

import logging
from pathlib import Path

import store
from audio_sync import AudioSynchronizer
from focus import focus_point
from loop_control import loop_label
from ocr_client import OCRClient
from pacing import LoopPolicy, PacePolicy, clamp_wpm
from player import PydubPlayer
from scale import DEFAULT_VIEWPORT_PX, ScaleMode, clamp_manual_px
from scheduler import CallLater, Scheduler
from segmenter import Document

logger = logging.getLogger("speed-reader.session")


class ReaderSession:
    """Single-user reading session. Only this object mutates engine state."""

    def __init__(
        self,
        text: str = store.DEFAULT_TEXT,
        volume: float = store.DEFAULT_VOLUME,
        call_later: CallLater | None = None,
        ocr: OCRClient | None = None,
    ):
        self.pace = PacePolicy()
        self.loops = LoopPolicy()
        self.scale = ScaleMode()
        self.viewport_width_px = DEFAULT_VIEWPORT_PX
        self.audio = AudioSynchronizer(volume)
        self.scheduler = Scheduler(self.pace, self.loops, self.audio, call_later)
        self.ocr = ocr or OCRClient()
        self.scanning = False
        self.scan_progress = 0.0
        self.text = ""
        self._load(text)

    @classmethod
    async def open(cls, call_later: CallLater | None = None, ocr: OCRClient | None = None) -> ReaderSession:
        """Create a session from the persisted text and volume."""
        text = await store.load_text()
        volume = await store.load_volume()
        return cls(text=text, volume=volume, call_later=call_later, ocr=ocr)

    @property
    def document(self) -> Document:
        return self.scheduler.document

    def view(self) -> dict:
        state = self.scheduler.state
        parts = focus_point(self.document.word_at(state.word_index))
        return {
            "prefix": parts.prefix,
            "focus": parts.focus,
            "suffix": parts.suffix,
            "word_index": state.word_index,
            "word_count": 0 if self.document.is_empty else len(self.document),
            "pace_wpm": self.scheduler.current_pace(),
            "loop_count": state.loop_count,
            "loop_label": loop_label(self.loops, state.loop_count),
            "playing": state.playing,
            "progress": self.scheduler.progress(),
            "font_px": self.scale.font_px,
            "volume": self.audio.volume,
            "audio_name": self.audio.name,
            "scanning": self.scanning,
            "scan_progress": self.scan_progress,
            "settings": self.settings(),
        }

    def settings(self) -> dict:
        return {
            "base_wpm": self.pace.base_wpm,
            "ramp_enabled": self.pace.ramp_enabled,
            "start_wpm": self.pace.start_wpm,
            "end_wpm": self.pace.end_wpm,
            "loop_enabled": self.loops.enabled,
            "max_loops": self.loops.max_loops,
            "auto_scale": self.scale.auto,
            "manual_px": self.scale.manual_px,
            "viewport_width_px": self.viewport_width_px,
            "volume": self.audio.volume,
        }

    # --- document ---

    def _load(self, text: str):
        self.text = text
        self.scheduler.load(Document.from_text(text))
        self._refresh_scale()

    async def set_text(self, text: str):
        self._load(text)
        await store.set_value(store.TEXT_KEY, text)

    # --- pace ---

    def set_base_wpm(self, value):
        self.pace.base_wpm = clamp_wpm(value, "base_wpm")
        self.scheduler.retime()

    def set_ramp_enabled(self, enabled: bool):
        self.pace.ramp_enabled = bool(enabled)
        self.scheduler.retime()

    def set_start_wpm(self, value):
        self.pace.start_wpm = clamp_wpm(value, "start_wpm")
        self.scheduler.retime()

    def set_end_wpm(self, value):
        self.pace.end_wpm = clamp_wpm(value, "end_wpm")
        self.scheduler.retime()

    # --- loops ---

    def set_loop_enabled(self, enabled: bool):
        self.loops.enabled = bool(enabled)
        self.scheduler.retime()

    def set_max_loops(self, value: int):
        max_loops = int(value)
        if max_loops < 0:
            logger.warning("Negative loop count %d treated as unbounded", max_loops)
            max_loops = 0
        self.loops.max_loops = max_loops
        self.scheduler.retime()

    # --- display scale ---

    def _refresh_scale(self):
        self.scale.refresh(self.document.words, self.viewport_width_px)

    def set_auto_scale(self, auto: bool):
        self.scale.auto = bool(auto)
        self._refresh_scale()

    def set_manual_px(self, px: int):
        """Only honoured in manual mode; auto mode keeps the estimated size."""
        if self.scale.auto:
            logger.info("Ignoring manual font size %s while auto scale is on", px)
            return
        self.scale.manual_px = clamp_manual_px(px)

    def set_viewport_width(self, px: float):
        if px <= 0:
            raise ValueError(f"viewport width must be positive, got {px}")
        self.viewport_width_px = px
        self._refresh_scale()

    # --- audio ---

    async def set_volume(self, level: float):
        self.audio.set_volume(level)
        await store.set_value(store.VOLUME_KEY, str(self.audio.volume))

    def attach_audio(self, path: Path | str, name: str):
        """Load and attach a new track, replacing any previous one. Playback pauses."""
        player = PydubPlayer()
        player.load(path)
        self.scheduler.pause()
        self.audio.attach(player, name)

    def detach_audio(self):
        self.audio.release()

    # --- playback ---

    def toggle(self):
        self.scheduler.toggle()

    def pause(self):
        self.scheduler.pause()

    def launch(self):
        self.scheduler.launch()

    # --- OCR ---

    def _on_scan_progress(self, fraction: float):
        self.scan_progress = fraction

    async def scan(self, image: bytes, filename: str = "page.png", content_type: str = "image/png") -> str:
        """OCR an image into a new document. On OCRError the current document is kept."""
        self.scanning = True
        self.scan_progress = 0.0
        try:
            text = await self.ocr.recognize(image, filename, content_type, on_progress=self._on_scan_progress)
        finally:
            self.scanning = False
        await self.set_text(text)
        logger.info("Scanned %s: %d words", filename, len(self.document))
        return text

    async def close(self):
        self.scheduler.close()
        self.audio.release()
        await self.ocr.close()
