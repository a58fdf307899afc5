"""Floq vibe engine MCP server — application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastmcp import FastMCP

from floq.core.config.settings import Settings, get_settings
from floq.core.scheduling.clock import Clock, SystemClock
from floq.domains.vibe.collectors.scripted import load_scenario
from floq.domains.vibe.collectors.temporal import TemporalCollector
from floq.domains.vibe.domain_logic.orchestrator import SignalOrchestrator
from floq.domains.vibe.tools.vibe_tools import register_vibe_tools

logger = logging.getLogger(__name__)

# Bundled demo scenarios live under src/floq/domains/vibe/scenarios/
SCENARIO_DIR = Path(__file__).resolve().parent.parent.parent / "domains" / "vibe" / "scenarios"


def build_orchestrator(settings: Settings, clock: Clock | None = None) -> SignalOrchestrator:
    """Create an orchestrator with the configured collectors registered.

    The temporal collector is always present. Scripted collectors from
    ``VIBE_SCENARIO_PATH`` are added on top; a scenario collector named
    ``temporal`` replaces the clock-driven one. A relative path that does
    not exist is looked up among the bundled scenarios.
    """
    clock = clock or SystemClock()
    orchestrator = SignalOrchestrator.from_settings(settings, clock)
    orchestrator.register_collector(
        TemporalCollector(clock, timezone=settings.vibe_timezone or None)
    )

    if settings.vibe_scenario_path:
        path = Path(settings.vibe_scenario_path).expanduser()
        if not path.is_absolute() and not path.exists():
            path = SCENARIO_DIR / path
        for collector in load_scenario(path):
            orchestrator.register_collector(collector)

    logger.info("Registered signal collectors: %s", ", ".join(orchestrator.collectors))
    return orchestrator


def create_app(
    *,
    orchestrator_override: SignalOrchestrator | None = None,
) -> FastMCP:
    """Create and configure the floq vibe MCP server.

    This is the main application factory. It:
    1. Builds the signal orchestrator (or uses the override)
    2. Creates the FastMCP server whose lifespan starts/stops the loop
    3. Registers all tools
    """
    settings = get_settings()

    if orchestrator_override is not None:
        orchestrator = orchestrator_override
    else:
        orchestrator = build_orchestrator(settings)

    @asynccontextmanager
    async def lifespan(_server: FastMCP):
        await orchestrator.start()
        try:
            yield {"orchestrator": orchestrator}
        finally:
            await orchestrator.stop()

    # --- Server instance ---
    server = FastMCP(
        "Floq Vibe Engine",
        instructions=(
            "Live vibe engine for the floq app. Fuses location, movement, "
            "time-of-day and behavior signals into an energy estimate with a "
            "confidence score."
        ),
        lifespan=lifespan,
    )

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": "Floq Vibe Engine",
            "version": "0.1.0",
            "running": orchestrator.is_running,
            "collectors": orchestrator.collectors,
            "snapshots_stored": len(orchestrator.snapshots),
            "collection_interval_s": settings.vibe_collection_interval_s,
        }

    register_vibe_tools(server, orchestrator)
    logger.info("Vibe engine tools registered")

    return server


# Module-level instance for FastMCP discovery.
# Lazy: only created when this attribute is accessed (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
