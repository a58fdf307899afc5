"""Vibe signal collectors — one per modality of evidence."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from floq.domains.vibe.domain_logic.signal_models import SignalPayload


@runtime_checkable
class SignalCollector(Protocol):
    """Capability contract every signal source implements.

    The orchestrator polls collectors without knowing whether readings come
    from device sensors, the clock, learned patterns, or a scripted replay.
    Collectors may additionally define ``dispose()`` (sync or async) to
    release sensors when the orchestrator is disposed.
    """

    @property
    def name(self) -> str:
        """Stable identifier; registering a second collector with the same
        name replaces the first."""
        ...

    def is_available(self) -> bool:
        """Whether this source can produce a reading right now."""
        ...

    async def collect(self) -> SignalPayload | None:
        """Produce a point-in-time reading, or None if momentarily empty.

        Returning None keeps the collector marked available for the tick.
        Raising, exceeding the orchestrator's collect timeout, or returning
        something that is not a signal payload marks it unavailable
        (``availability[name] = False``) for that tick only.
        """
        ...

    def get_quality(self) -> float:
        """Self-assessed 0-1 reliability of the most recent reading."""
        ...
