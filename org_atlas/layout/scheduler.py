"""
org_atlas/layout/scheduler.py — Animation-frame schedulers for the layout loop.

The layout engine advances one integration step per frame. Where those frames
come from is the scheduler's business:

    ManualFrameScheduler   — frames fire only when advance() is called.
                             Used by tests, the CLI and any headless caller.
    AsyncioFrameScheduler  — frames fire on an asyncio event loop every
                             config.frame_interval_s seconds. Single-threaded
                             and cooperative, like a browser's animation clock.

Both honour the same contract: request_frame(callback) returns a handle,
cancel_frame(handle) guarantees that callback will not run.
"""

import asyncio
import itertools
import logging
from typing import Callable, Optional, Protocol

from org_atlas.config import DEFAULT_CONFIG

logger = logging.getLogger(__name__)

FrameCallback = Callable[[], None]


class FrameScheduler(Protocol):
    """Anything that can run a callback on the next frame and cancel it."""

    def request_frame(self, callback: FrameCallback) -> object:
        ...

    def cancel_frame(self, handle: object) -> None:
        ...


class ManualFrameScheduler:
    """
    Deterministic frame clock driven by explicit advance() calls.

    Callbacks requested while a frame is running are queued for the *next*
    advance(), matching requestAnimationFrame semantics.
    """

    def __init__(self):
        self._pending: dict[int, FrameCallback] = {}
        self._ids = itertools.count(1)
        self.frames_run = 0

    def request_frame(self, callback: FrameCallback) -> int:
        handle = next(self._ids)
        self._pending[handle] = callback
        return handle

    def cancel_frame(self, handle: object) -> None:
        self._pending.pop(handle, None)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def advance(self) -> int:
        """Run every callback queued before this call. Returns how many ran."""
        batch = list(self._pending.items())
        self._pending.clear()
        for _, callback in batch:
            callback()
        if batch:
            self.frames_run += 1
        return len(batch)

    def run_until_idle(self, max_frames: int = 10_000) -> int:
        """Advance until nothing is pending or max_frames frames have run."""
        frames = 0
        while self._pending and frames < max_frames:
            self.advance()
            frames += 1
        return frames


class AsyncioFrameScheduler:
    """
    Frame clock on an asyncio event loop.

    Args:
        interval_s: Delay between a request and its frame (default
                    config.frame_interval_s, ~60 fps).
        loop:       Event loop to schedule on. Defaults to the running loop at
                    request time.
    """

    def __init__(self, interval_s: float = DEFAULT_CONFIG.frame_interval_s, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.interval_s = interval_s
        self._loop = loop

    def request_frame(self, callback: FrameCallback) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(self.interval_s, callback)

    def cancel_frame(self, handle: object) -> None:
        if handle is not None:
            handle.cancel()
