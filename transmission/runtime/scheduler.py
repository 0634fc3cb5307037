"""Deferred callbacks for message pacing.

The runtime never sleeps; every delay is a callback registered here. The
production scheduler rides the running asyncio loop, tests swap in a fake
clock.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle: ...


class LoopScheduler:
    """Scheduler backed by `loop.call_later`. Delays are milliseconds."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> asyncio.Handle:
        loop = self._loop or asyncio.get_running_loop()
        if delay_ms <= 0:
            # call_soon keeps FIFO order for same-instant callbacks
            return loop.call_soon(callback)
        return loop.call_later(delay_ms / 1000, callback)
