"""Deterministic vibe math: snapshots -> energy, confidence, sources.

Every function here is pure. Energy and confidence values are always
clamped to [0, 1]; nothing depends on wall-clock time except through the
snapshots passed in.
"""

from __future__ import annotations

import statistics
from typing import Sequence

from floq.domains.vibe.domain_logic.signal_models import (
    ACTIVITY_BOOSTS,
    BASELINE_CONFIDENCE,
    BASELINE_ENERGY,
    DEFAULT_PATTERN_BOOST,
    EVENING_BOOST,
    EVENING_HOURS,
    MIN_CONSISTENCY,
    PATTERN_BOOSTS,
    SINGLE_SNAPSHOT_CONSISTENCY,
    URBAN_DENSITY_WEIGHT,
    VENUE_WEIGHT,
    WEEKEND_BOOST,
    BehavioralSignal,
    EnvironmentalSignal,
    LocationSignal,
    MovementSignal,
    SignalPayload,
    SignalSnapshot,
    TemporalSignal,
    VibePoint,
    clamp,
)


# ---------------------------------------------------------------------------
# Per-payload energy contributions
# ---------------------------------------------------------------------------

def energy_contribution(payload: SignalPayload) -> float:
    """Additive energy adjustment for a single modality reading."""
    if isinstance(payload, LocationSignal):
        boost = clamp(payload.urban_density) * URBAN_DENSITY_WEIGHT
        if payload.venue is not None:
            boost += clamp(payload.venue.confidence) * VENUE_WEIGHT
        return boost

    if isinstance(payload, MovementSignal):
        return ACTIVITY_BOOSTS.get(payload.activity, 0.0)

    if isinstance(payload, TemporalSignal):
        lo, hi = EVENING_HOURS
        boost = EVENING_BOOST if lo <= payload.hour_of_day <= hi else 0.0
        if payload.is_weekend:
            boost += WEEKEND_BOOST
        return boost

    if isinstance(payload, BehavioralSignal):
        pm = payload.pattern_match
        if pm is None:
            return 0.0
        base = PATTERN_BOOSTS.get(pm.type, DEFAULT_PATTERN_BOOST)
        return base * clamp(pm.confidence)

    if isinstance(payload, EnvironmentalSignal):
        return 0.0

    raise TypeError(f"Unsupported signal payload: {type(payload).__name__}")


def snapshot_energy(snapshot: SignalSnapshot) -> float:
    """Baseline energy plus every source's contribution, clamped to [0, 1]."""
    energy = BASELINE_ENERGY
    for payload in snapshot.sources.values():
        energy += energy_contribution(payload)
    return clamp(energy)


# ---------------------------------------------------------------------------
# Window aggregation
# ---------------------------------------------------------------------------

def calculate_energy(snapshots: Sequence[SignalSnapshot]) -> float:
    """Quality-weighted mean of per-snapshot energies.

    Falls back to the baseline when the window carries no weight.
    """
    total_energy = 0.0
    total_weight = 0.0
    for snapshot in snapshots:
        weight = snapshot.quality
        total_energy += snapshot_energy(snapshot) * weight
        total_weight += weight
    if total_weight <= 0:
        return BASELINE_ENERGY
    return clamp(total_energy / total_weight)


def calculate_consistency(snapshots: Sequence[SignalSnapshot]) -> float:
    """``1 - population stddev`` of per-snapshot energies, floored at 0.1."""
    if len(snapshots) < 2:
        return SINGLE_SNAPSHOT_CONSISTENCY
    energies = [snapshot_energy(s) for s in snapshots]
    return max(MIN_CONSISTENCY, 1.0 - statistics.pstdev(energies))


def active_sources(snapshots: Sequence[SignalSnapshot]) -> list[str]:
    """Distinct modality kinds across the window, in first-seen order."""
    kinds: list[str] = []
    for snapshot in snapshots:
        for kind in snapshot.kinds:
            if kind not in kinds:
                kinds.append(kind)
    return kinds


def calculate_signal_diversity(snapshots: Sequence[SignalSnapshot]) -> float:
    """1 kind -> 0.4, 2 -> 0.6, 3 -> 0.8, 4+ -> 1.0."""
    return min(1.0, 0.2 + 0.2 * len(active_sources(snapshots)))


def calculate_confidence(snapshots: Sequence[SignalSnapshot]) -> float:
    """``avg quality * consistency * diversity``, clamped to [0, 1]."""
    if not snapshots:
        return BASELINE_CONFIDENCE
    avg_quality = statistics.fmean(s.quality for s in snapshots)
    return clamp(
        avg_quality
        * calculate_consistency(snapshots)
        * calculate_signal_diversity(snapshots)
    )


def baseline_vibe_point(t: float) -> VibePoint:
    """Low-confidence neutral estimate used when there is nothing recent."""
    return VibePoint(t=t, energy=BASELINE_ENERGY, confidence=BASELINE_CONFIDENCE, sources=[])


def compute_vibe_point(
    snapshots: Sequence[SignalSnapshot],
    *,
    now: float,
    window_s: float = 60.0,
) -> VibePoint:
    """Derive the VibePoint from snapshots younger than ``window_s``."""
    recent = [s for s in snapshots if now - s.timestamp < window_s]
    if not recent:
        return baseline_vibe_point(now)
    return VibePoint(
        t=now,
        energy=calculate_energy(recent),
        confidence=calculate_confidence(recent),
        sources=active_sources(recent),
    )
