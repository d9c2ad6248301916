"""Test doubles: a manually driven timer, fake media players and a fake OCR client."""

from __future__ import annotations


class ManualTimer:
    def __init__(self, delay: float, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualTimers:
    """Drop-in for ``loop.call_later`` that only fires when told to."""

    def __init__(self) -> None:
        self.created: list[ManualTimer] = []

    def __call__(self, delay: float, callback) -> ManualTimer:
        timer = ManualTimer(delay, callback)
        self.created.append(timer)
        return timer

    @property
    def pending(self) -> list[ManualTimer]:
        return [t for t in self.created if not t.cancelled and not t.fired]

    def fire(self) -> float:
        """Fire the one outstanding timer and return its delay in seconds."""
        pending = self.pending
        assert len(pending) == 1, f"expected exactly one pending timer, got {len(pending)}"
        timer = pending[0]
        timer.fired = True
        timer.callback()
        return timer.delay


class FakePlayer:
    """Records every media call."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []

    def load(self, source) -> None:
        self.calls.append(("load", source))

    def play(self) -> None:
        self.calls.append(("play",))

    def pause(self) -> None:
        self.calls.append(("pause",))

    def set_current_time(self, seconds: float) -> None:
        self.calls.append(("set_current_time", seconds))

    def set_volume(self, level: float) -> None:
        self.calls.append(("set_volume", level))

    def release(self) -> None:
        self.calls.append(("release",))

    def names(self) -> list[str]:
        return [c[0] for c in self.calls]


class BlockedPlayer(FakePlayer):
    """Simulates a platform that refuses autonomous playback."""

    def play(self) -> None:
        self.calls.append(("play",))
        raise RuntimeError("play() requires a user gesture")


class FakeOCR:
    def __init__(self, text: str = "scanned page text", error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.closed = False

    async def recognize(self, image, filename="page.png", content_type="image/png", on_progress=None) -> str:
        if on_progress is not None:
            on_progress(0.5)
            on_progress(1.0)
        if self.error is not None:
            raise self.error
        return self.text

    async def health_check(self) -> dict:
        return {"status": "ok"}

    async def close(self) -> None:
        self.closed = True
