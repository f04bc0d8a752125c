"""Deferred callback interface."""

from typing import Callable, Protocol


class TimerHandle(Protocol):
    """A pending callback that can be cancelled."""

    def cancel(self) -> None:
        ...


class Timer(Protocol):
    """Interface for scheduling a callback on the caller's event loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback after delay seconds."""
        ...
