"""Integration tests for the floq vibe MCP server."""

from __future__ import annotations

import asyncio
import json

import pytest
from fastmcp import Client

from floq.core.config.settings import Settings
from floq.core.server.app import build_orchestrator, create_app
from floq.domains.vibe.collectors.scripted import ScriptedCollector
from floq.domains.vibe.domain_logic.orchestrator import SignalOrchestrator
from floq.domains.vibe.domain_logic.signal_models import (
    MovementSignal,
    TemporalSignal,
)


def _run(coro):
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


ALL_EXPECTED_TOOLS = [
    "health_check",
    "vibe_now",
    "vibe_state",
    "signal_health",
    "vibe_collect_now",
]


def _payload(result) -> dict:
    """Decode the JSON text block of a tool result."""
    content = getattr(result, "content", result)
    return json.loads(content[0].text)


@pytest.fixture
def orchestrator() -> SignalOrchestrator:
    # Real clock with a long interval: the lifespan loop ticks once, then idles.
    orchestrator = SignalOrchestrator(interval_s=3600)
    orchestrator.register_collector(
        ScriptedCollector("temporal", [TemporalSignal(hour_of_day=20)], loop=True)
    )
    orchestrator.register_collector(
        ScriptedCollector("movement", [MovementSignal("walking")], loop=True, quality=0.5)
    )
    return orchestrator


@pytest.fixture
def client(orchestrator):
    mcp = create_app(orchestrator_override=orchestrator)
    return Client(mcp)


def test_server_starts_and_lists_tools(client):
    async def _check():
        async with client:
            tools = await client.list_tools()
            tool_names = [t.name for t in tools]
            for expected in ALL_EXPECTED_TOOLS:
                assert expected in tool_names, f"Missing tool: {expected}"
    _run(_check())


def test_health_check_returns_ok(client):
    async def _check():
        async with client:
            result = await client.call_tool("health_check", {})
            text = str(result)
            assert "ok" in text
            assert "movement" in text
    _run(_check())


def test_collect_now_then_vibe_now(client):
    async def _check():
        async with client:
            collected = _payload(await client.call_tool("vibe_collect_now", {}))
            assert collected["status"] == "ok"
            assert set(collected["snapshot"]["sources"]) == {"temporal", "movement"}

            vibe = _payload(await client.call_tool("vibe_now", {}))
            # 0.3 baseline + 0.2 evening + 0.2 walking
            assert vibe["energy"] == pytest.approx(0.7)
            assert sorted(vibe["sources"]) == ["movement", "temporal"]
            assert 0.0 < vibe["confidence"] <= 1.0
    _run(_check())


def test_vibe_state_limits_snapshots(client):
    async def _check():
        async with client:
            for _ in range(3):
                await client.call_tool("vibe_collect_now", {})
            state = _payload(await client.call_tool("vibe_state", {"snapshot_limit": 2}))
            assert len(state["recent_snapshots"]) == 2
            assert state["window_size"] >= 3
            assert state["signal_health"] == {"temporal": 1.0, "movement": 0.5}
    _run(_check())


def test_signal_health_lists_collectors(client):
    async def _check():
        async with client:
            health = _payload(await client.call_tool("signal_health", {}))
            assert health["collectors"] == ["temporal", "movement"]
    _run(_check())


def test_collect_now_without_signals():
    orchestrator = SignalOrchestrator(interval_s=3600)
    orchestrator.register_collector(
        ScriptedCollector("gps", [None], loop=True)
    )
    client = Client(create_app(orchestrator_override=orchestrator))

    async def _check():
        async with client:
            result = _payload(await client.call_tool("vibe_collect_now", {}))
            assert result["status"] == "no_signals"
            assert result["vibe"]["energy"] == pytest.approx(0.3)
            assert result["vibe"]["confidence"] == pytest.approx(0.1)
    _run(_check())


class TestBuildOrchestrator:
    def test_default_has_temporal_collector(self):
        orchestrator = build_orchestrator(Settings())
        assert orchestrator.collectors == ["temporal"]

    def test_bundled_scenario_by_name(self, monkeypatch):
        monkeypatch.setenv("VIBE_SCENARIO_PATH", "evening_out.yaml")
        orchestrator = build_orchestrator(Settings())
        assert orchestrator.collectors == ["temporal", "location", "movement", "behavioral"]

    def test_missing_scenario_raises(self, monkeypatch, tmp_path):
        monkeypatch.setenv("VIBE_SCENARIO_PATH", str(tmp_path / "nope.yaml"))
        with pytest.raises(FileNotFoundError):
            build_orchestrator(Settings())
