"""Vibe signal payloads, snapshots and derived state, plus domain constants."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, ClassVar, Mapping, Union


# ---------------------------------------------------------------------------
# Domain constants (used by vibe_calculator and the orchestrator)
# ---------------------------------------------------------------------------

BASELINE_ENERGY = 0.3           # Neutral energy when nothing else is known
BASELINE_CONFIDENCE = 0.1       # Confidence of the neutral baseline
SINGLE_SNAPSHOT_CONSISTENCY = 0.5
MIN_CONSISTENCY = 0.1

# Location
URBAN_DENSITY_WEIGHT = 0.3
VENUE_WEIGHT = 0.2

# Movement
ACTIVITY_BOOSTS = {
    "walking": 0.2,
    "transit": 0.1,
}

# Temporal: evening hours are inclusive on both ends
EVENING_HOURS = (18, 23)
EVENING_BOOST = 0.2
WEEKEND_BOOST = 0.1

# Behavioral
PATTERN_BOOSTS = {
    "social-night": 0.3,
    "adventure": 0.25,
    "exploration": 0.2,
}
DEFAULT_PATTERN_BOOST = 0.1


def clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    """Clamp a value to [lo, hi]."""
    return max(lo, min(hi, value))


# ---------------------------------------------------------------------------
# Signal payloads — one variant per modality
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VenueMatch:
    """A recognized venue attached to a location reading."""

    venue_id: str
    confidence: float
    name: str = ""


@dataclass(frozen=True)
class LocationSignal:
    kind: ClassVar[str] = "location"

    urban_density: float            # 0-1: how built-up the surroundings are
    venue: VenueMatch | None = None


@dataclass(frozen=True)
class MovementSignal:
    kind: ClassVar[str] = "movement"

    activity: str                   # 'still' | 'walking' | 'transit' | 'driving' | 'unknown'
    speed_mps: float | None = None


@dataclass(frozen=True)
class TemporalSignal:
    kind: ClassVar[str] = "temporal"

    hour_of_day: int                # 0-23, local time
    is_weekend: bool = False
    day_of_week: int | None = None  # 0 = Monday


@dataclass(frozen=True)
class PatternMatch:
    """A learned behavior pattern the current context resembles."""

    type: str                       # 'social-night' | 'adventure' | 'exploration' | ...
    confidence: float


@dataclass(frozen=True)
class BehavioralSignal:
    kind: ClassVar[str] = "behavioral"

    pattern_match: PatternMatch | None = None


@dataclass(frozen=True)
class EnvironmentalSignal:
    """Ambient audio level and motion variance aggregates.

    Contributes to source diversity only; it carries no energy weight.
    """

    kind: ClassVar[str] = "environmental"

    audio_rms: float | None = None
    motion_var: float | None = None
    audio_frames: int = 0
    motion_frames: int = 0


SignalPayload = Union[
    LocationSignal,
    MovementSignal,
    TemporalSignal,
    BehavioralSignal,
    EnvironmentalSignal,
]

PAYLOAD_TYPES: dict[str, type] = {
    cls.kind: cls
    for cls in (
        LocationSignal,
        MovementSignal,
        TemporalSignal,
        BehavioralSignal,
        EnvironmentalSignal,
    )
}


def is_signal_payload(value: object) -> bool:
    return isinstance(value, tuple(PAYLOAD_TYPES.values()))


def payload_from_dict(kind: str, data: Mapping[str, Any]) -> SignalPayload:
    """Build a typed payload from a plain mapping (YAML scenarios, tool input).

    Raises:
        ValueError: Unknown kind or missing required fields.
    """
    if kind not in PAYLOAD_TYPES:
        raise ValueError(
            f"Unknown signal kind {kind!r}; expected one of {sorted(PAYLOAD_TYPES)}"
        )
    data = dict(data or {})
    try:
        if kind == "location":
            venue = data.get("venue")
            return LocationSignal(
                urban_density=float(data.get("urban_density", 0.0)),
                venue=VenueMatch(
                    venue_id=str(venue.get("venue_id", venue.get("id", ""))),
                    confidence=float(venue.get("confidence", 0.0)),
                    name=str(venue.get("name", "")),
                ) if venue else None,
            )
        if kind == "movement":
            speed = data.get("speed_mps")
            return MovementSignal(
                activity=str(data.get("activity", "unknown")),
                speed_mps=float(speed) if speed is not None else None,
            )
        if kind == "temporal":
            dow = data.get("day_of_week")
            return TemporalSignal(
                hour_of_day=int(data["hour_of_day"]),
                is_weekend=bool(data.get("is_weekend", False)),
                day_of_week=int(dow) if dow is not None else None,
            )
        if kind == "behavioral":
            pm = data.get("pattern_match")
            return BehavioralSignal(
                pattern_match=PatternMatch(
                    type=str(pm["type"]),
                    confidence=float(pm.get("confidence", 0.0)),
                ) if pm else None,
            )
        return EnvironmentalSignal(
            audio_rms=data.get("audio_rms"),
            motion_var=data.get("motion_var"),
            audio_frames=int(data.get("audio_frames", 0)),
            motion_frames=int(data.get("motion_frames", 0)),
        )
    except (KeyError, TypeError, AttributeError) as exc:
        raise ValueError(f"Invalid {kind} signal payload: {data!r}") from exc


def payload_to_dict(payload: SignalPayload) -> dict[str, Any]:
    """JSON-safe rendering of a payload, tagged with its kind."""
    if isinstance(payload, LocationSignal):
        body: dict[str, Any] = {"urban_density": payload.urban_density, "venue": None}
        if payload.venue is not None:
            body["venue"] = {
                "venue_id": payload.venue.venue_id,
                "name": payload.venue.name,
                "confidence": payload.venue.confidence,
            }
    elif isinstance(payload, MovementSignal):
        body = {"activity": payload.activity, "speed_mps": payload.speed_mps}
    elif isinstance(payload, TemporalSignal):
        body = {
            "hour_of_day": payload.hour_of_day,
            "is_weekend": payload.is_weekend,
            "day_of_week": payload.day_of_week,
        }
    elif isinstance(payload, BehavioralSignal):
        pm = payload.pattern_match
        body = {
            "pattern_match": (
                {"type": pm.type, "confidence": pm.confidence} if pm else None
            ),
        }
    elif isinstance(payload, EnvironmentalSignal):
        body = {
            "audio_rms": payload.audio_rms,
            "motion_var": payload.motion_var,
            "audio_frames": payload.audio_frames,
            "motion_frames": payload.motion_frames,
        }
    else:
        raise TypeError(f"Not a signal payload: {payload!r}")
    return {"kind": payload.kind, **body}


# ---------------------------------------------------------------------------
# Snapshot and derived state
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SignalSnapshot:
    """All collectors' readings at one collection tick.

    ``sources`` only holds collectors that were available and returned data;
    ``availability`` covers every collector registered at tick time.
    """

    timestamp: float
    sources: Mapping[str, SignalPayload]
    quality: float
    availability: Mapping[str, bool]

    def __post_init__(self) -> None:
        missing = set(self.sources) - set(self.availability)
        if missing:
            raise ValueError(f"Sources without availability entries: {sorted(missing)}")
        object.__setattr__(self, "sources", MappingProxyType(dict(self.sources)))
        object.__setattr__(self, "availability", MappingProxyType(dict(self.availability)))
        object.__setattr__(self, "quality", clamp(self.quality))

    @property
    def kinds(self) -> list[str]:
        """Modality kinds present in this snapshot, in source order."""
        seen: list[str] = []
        for payload in self.sources.values():
            if payload.kind not in seen:
                seen.append(payload.kind)
        return seen

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "quality": round(self.quality, 4),
            "sources": {name: payload_to_dict(p) for name, p in self.sources.items()},
            "availability": dict(self.availability),
        }


@dataclass(frozen=True)
class VibePoint:
    """Current energy estimate and how much to trust it."""

    t: float
    energy: float                   # 0-1
    confidence: float               # 0-1
    sources: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "t": self.t,
            "energy": round(self.energy, 4),
            "confidence": round(self.confidence, 4),
            "sources": list(self.sources),
        }


@dataclass(frozen=True)
class VibeEngineState:
    """Consumer view of the engine, pushed to listeners after each tick."""

    current_vibe: VibePoint
    recent_snapshots: list[SignalSnapshot]
    signal_health: dict[str, float]
    last_update: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "current_vibe": self.current_vibe.to_dict(),
            "recent_snapshots": [s.to_dict() for s in self.recent_snapshots],
            "signal_health": {k: round(v, 4) for k, v in self.signal_health.items()},
            "last_update": self.last_update,
        }
