"""Temporal collector — time-of-day and weekend context from the clock."""

from __future__ import annotations

from datetime import datetime, tzinfo
from zoneinfo import ZoneInfo

from floq.core.scheduling.clock import Clock, SystemClock
from floq.domains.vibe.domain_logic.signal_models import TemporalSignal


class TemporalCollector:
    """Always available; reads the injected clock in a fixed timezone.

    ``timezone`` accepts an IANA name or a tzinfo. None uses host local time.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        timezone: str | tzinfo | None = None,
        *,
        name: str = "temporal",
    ) -> None:
        self._clock = clock or SystemClock()
        self._tz = ZoneInfo(timezone) if isinstance(timezone, str) else timezone
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def is_available(self) -> bool:
        return True

    async def collect(self) -> TemporalSignal:
        if self._tz is None:
            moment = datetime.fromtimestamp(self._clock.now()).astimezone()
        else:
            moment = datetime.fromtimestamp(self._clock.now(), tz=self._tz)
        weekday = moment.weekday()
        return TemporalSignal(
            hour_of_day=moment.hour,
            is_weekend=weekday >= 5,
            day_of_week=weekday,
        )

    def get_quality(self) -> float:
        return 1.0
