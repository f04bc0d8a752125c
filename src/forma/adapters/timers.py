"""Timer adapters for the undo deadline."""

import asyncio
from typing import Callable


class AsyncioTimer:
    """
    Timer backed by the asyncio event loop.

    Implements Timer protocol. Callbacks run on the same loop as the caller,
    so no locking is needed around the state they touch.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        """Schedule callback; the returned handle has cancel()."""
        return self.loop.call_later(delay, callback)
