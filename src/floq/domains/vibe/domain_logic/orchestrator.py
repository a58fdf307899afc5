"""Signal orchestrator — coordinates vibe signal collectors.

Polls every registered collector on a fixed delay, keeps a bounded rolling
window of snapshots, derives the current VibePoint and pushes the engine
state to listeners. Failures in collectors or listeners only degrade a
single tick; they never stop the loop.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import TYPE_CHECKING, Callable

from floq.core.scheduling.clock import Clock, SystemClock
from floq.domains.vibe.domain_logic.signal_models import (
    SignalPayload,
    SignalSnapshot,
    VibeEngineState,
    VibePoint,
    clamp,
    is_signal_payload,
)
from floq.domains.vibe.domain_logic.vibe_calculator import compute_vibe_point

if TYPE_CHECKING:
    from floq.core.config.settings import Settings
    from floq.domains.vibe.collectors import SignalCollector

logger = logging.getLogger(__name__)

Listener = Callable[[VibeEngineState], None]

DEFAULT_INTERVAL_S = 5.0
DEFAULT_MAX_SNAPSHOTS = 120
DEFAULT_RECENT_WINDOW_S = 60.0
DEFAULT_STATE_SNAPSHOTS = 10
DEFAULT_COLLECT_TIMEOUT_S = 1.5


class SignalOrchestrator:
    """Live, confidence-scored estimate of vibe energy from many collectors.

    Usage::

        orchestrator = SignalOrchestrator(clock=SystemClock())
        orchestrator.register_collector(TemporalCollector())
        unsubscribe = orchestrator.add_listener(print)
        await orchestrator.start()
        ...
        await orchestrator.stop()

    Tests can skip ``start()`` and drive ticks directly with ``await step()``.
    """

    def __init__(
        self,
        *,
        clock: Clock | None = None,
        interval_s: float = DEFAULT_INTERVAL_S,
        max_snapshots: int = DEFAULT_MAX_SNAPSHOTS,
        recent_window_s: float = DEFAULT_RECENT_WINDOW_S,
        state_snapshot_count: int = DEFAULT_STATE_SNAPSHOTS,
        collect_timeout_s: float | None = DEFAULT_COLLECT_TIMEOUT_S,
    ) -> None:
        if max_snapshots < 1:
            raise ValueError("max_snapshots must be at least 1")
        if interval_s <= 0:
            raise ValueError("interval_s must be positive")
        self._clock = clock or SystemClock()
        self._interval = interval_s
        self._max_snapshots = max_snapshots
        self._recent_window = recent_window_s
        self._state_snapshot_count = state_snapshot_count
        self._collect_timeout = collect_timeout_s or None

        self._collectors: dict[str, SignalCollector] = {}
        self._listeners: list[Listener] = []
        self._snapshots: list[SignalSnapshot] = []
        self._task: asyncio.Task | None = None
        self._tick_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings, clock: Clock | None = None) -> SignalOrchestrator:
        return cls(
            clock=clock,
            interval_s=settings.vibe_collection_interval_s,
            max_snapshots=settings.vibe_max_snapshots,
            recent_window_s=settings.vibe_recent_window_s,
            state_snapshot_count=settings.vibe_state_snapshot_count,
            collect_timeout_s=settings.vibe_collect_timeout_s,
        )

    # ---------------------------------------------------------------
    # Registry
    # ---------------------------------------------------------------

    @property
    def collectors(self) -> list[str]:
        """Registered collector names, in polling order."""
        return list(self._collectors)

    @property
    def snapshots(self) -> list[SignalSnapshot]:
        """Copy of the full snapshot window, oldest first."""
        return list(self._snapshots)

    def register_collector(self, collector: SignalCollector) -> None:
        """Add a collector, replacing any existing one with the same name."""
        name = collector.name
        if name in self._collectors:
            logger.info("Replacing signal collector %r", name)
        self._collectors[name] = collector

    def unregister_collector(self, name: str) -> None:
        """Remove a collector by name. No-op if absent."""
        self._collectors.pop(name, None)

    # ---------------------------------------------------------------
    # Listeners
    # ---------------------------------------------------------------

    def add_listener(self, callback: Listener) -> Callable[[], None]:
        """Subscribe to state updates. Returns an unsubscribe function."""
        self._listeners.append(callback)

        def _unsubscribe() -> None:
            self.remove_listener(callback)

        return _unsubscribe

    def remove_listener(self, callback: Listener) -> None:
        try:
            self._listeners.remove(callback)
        except ValueError:
            pass

    def _notify(self, state: VibeEngineState) -> None:
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.warning("Vibe engine listener %r failed", listener, exc_info=True)

    # ---------------------------------------------------------------
    # Read side
    # ---------------------------------------------------------------

    def get_vibe_point(self) -> VibePoint:
        """Current VibePoint from the existing window; never collects."""
        return compute_vibe_point(
            self._snapshots,
            now=self._clock.now(),
            window_s=self._recent_window,
        )

    def get_signal_health(self) -> dict[str, float]:
        health: dict[str, float] = {}
        for name, collector in self._collectors.items():
            try:
                health[name] = (
                    clamp(collector.get_quality())
                    if collector.is_available()
                    else 0.0
                )
            except Exception:
                health[name] = 0.0
        return health

    def get_state(self) -> VibeEngineState:
        recent = (
            self._snapshots[-self._state_snapshot_count:]
            if self._state_snapshot_count > 0
            else []
        )
        return VibeEngineState(
            current_vibe=self.get_vibe_point(),
            recent_snapshots=recent,
            signal_health=self.get_signal_health(),
            last_update=self._clock.now(),
        )

    # ---------------------------------------------------------------
    # Collection
    # ---------------------------------------------------------------

    async def _collect_one(self, collector: SignalCollector) -> SignalPayload | None:
        if self._collect_timeout is None:
            return await collector.collect()
        return await asyncio.wait_for(collector.collect(), timeout=self._collect_timeout)

    async def collect_snapshot(self) -> SignalSnapshot | None:
        """Poll every collector once, in registration order.

        Returns None when no collector contributed data with positive quality.
        """
        sources: dict[str, SignalPayload] = {}
        availability: dict[str, bool] = {}
        qualities: list[float] = []

        # Snapshot the registry: registration changes apply from the next tick.
        for name, collector in list(self._collectors.items()):
            try:
                available = bool(collector.is_available())
                availability[name] = available
                if not available:
                    continue
                signal = await self._collect_one(collector)
                if signal is None:
                    continue
                if not is_signal_payload(signal):
                    logger.warning(
                        "Signal collector %r returned %s, not a signal payload",
                        name,
                        type(signal).__name__,
                    )
                    availability[name] = False
                    continue
                quality = clamp(float(collector.get_quality()))
            except asyncio.TimeoutError:
                logger.warning(
                    "Signal collector %r timed out after %.1fs", name, self._collect_timeout
                )
                availability[name] = False
                continue
            except Exception as exc:
                logger.warning("Signal collector %r failed: %s", name, exc)
                availability[name] = False
                continue
            sources[name] = signal
            qualities.append(quality)

        if not sources or sum(qualities) <= 0:
            logger.debug("No collector produced usable data; tick discarded")
            return None

        return SignalSnapshot(
            timestamp=self._clock.now(),
            sources=sources,
            quality=sum(qualities) / len(qualities),
            availability=availability,
        )

    async def step(self) -> SignalSnapshot | None:
        """Run one collection tick and return the stored snapshot, if any.

        On-demand calls wait for an in-flight loop tick instead of overlapping it.
        """
        async with self._tick_lock:
            snapshot = await self.collect_snapshot()
            if snapshot is None:
                return None

            self._snapshots.append(snapshot)
            overflow = len(self._snapshots) - self._max_snapshots
            if overflow > 0:
                del self._snapshots[:overflow]

            self._notify(self.get_state())
            return snapshot

    async def _run(self) -> None:
        while True:
            try:
                await self.step()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Vibe signal collection tick failed")
            # Fixed delay after each tick, not a fixed rate.
            await self._clock.sleep(self._interval)

    # ---------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the collection loop. The first tick runs immediately."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run(), name="vibe-signal-orchestrator")
        logger.info(
            "Vibe signal orchestrator started (%d collectors, every %.1fs)",
            len(self._collectors),
            self._interval,
        )

    async def stop(self) -> None:
        """Stop the loop, aborting any in-flight tick. Idempotent."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Vibe signal orchestrator stopped")

    async def dispose(self) -> None:
        """Stop, release collectors and drop all listeners and snapshots."""
        await self.stop()
        for name, collector in list(self._collectors.items()):
            dispose = getattr(collector, "dispose", None)
            if not callable(dispose):
                continue
            try:
                result = dispose()
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                logger.warning("Failed to dispose signal collector %r: %s", name, exc)
        self._listeners.clear()
        self._snapshots.clear()
        self._collectors.clear()
