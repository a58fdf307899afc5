"""Clock abstraction for timer-driven loops.

The orchestrator never calls ``time.time`` or ``asyncio.sleep`` directly;
it receives a Clock so tests can step virtual time deterministically.
"""

from __future__ import annotations

import asyncio
import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Wall-clock time source plus a cooperative sleep."""

    def now(self) -> float:
        """Current time as epoch seconds."""
        ...

    async def sleep(self, seconds: float) -> None:
        """Suspend the calling task for ``seconds``."""
        ...


class SystemClock:
    """Real time: ``time.time`` and ``asyncio.sleep``."""

    def now(self) -> float:
        return time.time()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class ManualClock:
    """Virtual time for tests and replays.

    ``sleep`` advances virtual time by the requested delay, records it and
    yields to the event loop once, so a background loop makes exactly one
    step of progress per scheduler turn.

    Usage::

        clock = ManualClock(start=1_760_000_000.0)
        clock.advance(30)
        assert clock.now() == 1_760_000_030.0
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)
        self.sleeps: list[float] = []

    def now(self) -> float:
        return self._now

    def set(self, timestamp: float) -> None:
        self._now = float(timestamp)

    def advance(self, seconds: float) -> float:
        if seconds < 0:
            raise ValueError("Cannot move a clock backwards")
        self._now += seconds
        return self._now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(seconds)
        await asyncio.sleep(0)
