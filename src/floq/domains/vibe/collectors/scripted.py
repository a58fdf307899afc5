"""Scripted collectors — replay fixed readings for demos and tests.

A scenario YAML file describes one or more collectors::

    collectors:
      - name: temporal
        kind: temporal
        loop: true
        quality: 1.0
        readings:
          - signal: {hour_of_day: 20, is_weekend: false}
          - signal: null          # collector returns nothing this tick
          - quality: 0.4
            signal: {hour_of_day: 21}

Each call to ``collect()`` consumes one reading. Set ``available: false`` on a
collector (or flip ``ScriptedCollector.available``) to simulate a source
that is switched off.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

import yaml

from floq.domains.vibe.domain_logic.signal_models import (
    PAYLOAD_TYPES,
    SignalPayload,
    clamp,
    payload_from_dict,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScriptedReading:
    """One tick of a scripted collector."""

    signal: SignalPayload | None
    quality: float | None = None


class ScriptedCollector:
    """Replays ``readings`` in order, one per tick.

    When the script runs out the collector becomes unavailable, unless
    ``loop`` is set, in which case it starts over.
    """

    def __init__(
        self,
        name: str,
        readings: Iterable[ScriptedReading | SignalPayload | None],
        *,
        quality: float = 1.0,
        loop: bool = False,
        available: bool = True,
    ) -> None:
        self._name = name
        self.available = available
        self._readings = [
            r if isinstance(r, ScriptedReading) else ScriptedReading(signal=r)
            for r in readings
        ]
        self._default_quality = quality
        self._loop = loop
        self._cursor = 0
        self._last_quality = 0.0
        self.collect_calls = 0
        self.disposed = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def exhausted(self) -> bool:
        return not self._loop and self._cursor >= len(self._readings)

    def _current(self) -> ScriptedReading | None:
        if not self._readings or self.exhausted:
            return None
        return self._readings[self._cursor % len(self._readings)]

    def _advance(self) -> None:
        self._cursor += 1
        if self._loop and self._cursor >= len(self._readings):
            self._cursor = 0

    def is_available(self) -> bool:
        return self.available and not self.disposed and self._current() is not None

    async def collect(self) -> SignalPayload | None:
        self.collect_calls += 1
        reading = self._current()
        if reading is None:
            return None
        self._advance()
        q = reading.quality if reading.quality is not None else self._default_quality
        self._last_quality = clamp(q)
        return reading.signal

    def get_quality(self) -> float:
        return self._last_quality

    def dispose(self) -> None:
        self.disposed = True


# ---------------------------------------------------------------------------
# Scenario loading
# ---------------------------------------------------------------------------

def load_scenario(path: str | Path) -> list[ScriptedCollector]:
    """Parse a scenario YAML file into scripted collectors.

    Raises:
        ValueError: Malformed file, unknown signal kind, or duplicate names.
    """
    path = Path(path).expanduser()
    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict) or not isinstance(data.get("collectors"), list):
        raise ValueError(f"Scenario {path} must contain a 'collectors' list")

    collectors = [_collector_from_dict(entry, path) for entry in data["collectors"]]

    names = [c.name for c in collectors]
    dupes = sorted({n for n in names if names.count(n) > 1})
    if dupes:
        raise ValueError(f"Scenario {path} has duplicate collector names: {dupes}")

    logger.info("Loaded %d scripted collectors from %s", len(collectors), path)
    return collectors


def _collector_from_dict(entry: dict[str, Any], path: Path) -> ScriptedCollector:
    try:
        kind = entry["kind"]
    except (KeyError, TypeError):
        raise ValueError(f"Scenario {path}: every collector needs a 'kind'") from None
    if kind not in PAYLOAD_TYPES:
        raise ValueError(f"Scenario {path}: unknown signal kind {kind!r}")

    readings = []
    for raw in entry.get("readings") or []:
        raw = raw or {}
        signal = raw.get("signal")
        readings.append(
            ScriptedReading(
                signal=payload_from_dict(kind, signal) if signal is not None else None,
                quality=raw.get("quality"),
            )
        )

    return ScriptedCollector(
        name=str(entry.get("name", kind)),
        readings=readings,
        quality=float(entry.get("quality", 1.0)),
        loop=bool(entry.get("loop", False)),
        available=bool(entry.get("available", True)),
    )
