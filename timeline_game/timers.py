"""Cancellable one-shot timers for transient UI state."""

import asyncio
from typing import Callable, Optional


class FeedbackTimer:
    """
    Owns at most one pending asyncio TimerHandle.

    schedule() cancels whatever was pending before arming a new callback, so
    only the latest feedback ever clears itself.
    """

    def __init__(self):
        self._handle: Optional[asyncio.TimerHandle] = None

    def schedule(self, delay: float, callback: Callable[[], None]) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(delay, self._fire, callback)

    def _fire(self, callback: Callable[[], None]) -> None:
        self._handle = None
        callback()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def active(self) -> bool:
        return self._handle is not None
