"""Shared test fixtures for floq vibe engine tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VIBE_SCENARIO_PATH", "")
    monkeypatch.setenv("VIBE_TIMEZONE", "UTC")
    monkeypatch.setenv("VIBE_COLLECTION_INTERVAL_S", "5.0")
    monkeypatch.delenv("FLOQ_HOST", raising=False)
    monkeypatch.delenv("FLOQ_ALLOW_INSECURE_BIND", raising=False)

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from floq.core.scheduling.clock import ManualClock  # noqa: E402
from floq.domains.vibe.domain_logic.orchestrator import SignalOrchestrator  # noqa: E402

# Thursday 2025-10-09 20:00:00 UTC
_THURSDAY_EVENING = 1_759_968_000.0 + 20 * 3600.0


# ---------------------------------------------------------------------------
# Orchestrator fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def clock() -> ManualClock:
    """Virtual clock parked at Thursday 20:00 UTC."""
    return ManualClock(start=_THURSDAY_EVENING)


@pytest.fixture
def orchestrator(clock: ManualClock) -> SignalOrchestrator:
    """An orchestrator on the manual clock; not started."""
    return SignalOrchestrator(clock=clock)
