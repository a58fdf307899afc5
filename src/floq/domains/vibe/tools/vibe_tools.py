"""MCP tools exposing the live vibe engine.

All tools read the orchestrator's in-memory window; only
``vibe_collect_now`` triggers an extra collection tick.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from fastmcp import FastMCP

if TYPE_CHECKING:
    from floq.domains.vibe.domain_logic.orchestrator import SignalOrchestrator

logger = logging.getLogger(__name__)


def register_vibe_tools(mcp: FastMCP, orchestrator: SignalOrchestrator) -> None:
    """Register vibe engine tools on the MCP server."""

    @mcp.tool
    def vibe_now() -> str:
        """Current vibe energy (0-1) and how confident the engine is in it.

        Returns a low-confidence neutral baseline when no collector has
        produced data in the last minute.
        """
        return json.dumps(orchestrator.get_vibe_point().to_dict())

    @mcp.tool
    def vibe_state(snapshot_limit: int = 10) -> str:
        """Full engine state: current vibe, recent snapshots, signal health.

        Args:
            snapshot_limit: Max recent snapshots to include (newest kept).
        """
        state = orchestrator.get_state().to_dict()
        snapshots = state["recent_snapshots"]
        state["recent_snapshots"] = snapshots[-snapshot_limit:] if snapshot_limit > 0 else []
        state["window_size"] = len(orchestrator.snapshots)
        return json.dumps(state)

    @mcp.tool
    def signal_health() -> str:
        """Per-collector health: current quality, or 0 when unavailable."""
        return json.dumps({
            "collectors": orchestrator.collectors,
            "signal_health": orchestrator.get_signal_health(),
        })

    @mcp.tool
    async def vibe_collect_now() -> str:
        """Poll all collectors immediately instead of waiting for the next tick."""
        snapshot = await orchestrator.step()
        if snapshot is None:
            logger.info("On-demand collection produced no usable signals")
            return json.dumps({
                "status": "no_signals",
                "vibe": orchestrator.get_vibe_point().to_dict(),
            })
        return json.dumps({
            "status": "ok",
            "snapshot": snapshot.to_dict(),
            "vibe": orchestrator.get_vibe_point().to_dict(),
        })
