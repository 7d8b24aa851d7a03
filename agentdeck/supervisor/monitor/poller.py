"""Periodic status + slot reconciliation loop.

Each tick, strictly in this order:

1. refresh the spawner's cached liveness/activity (one host query);
2. under the registry lock, run status detection for every workspace;
3. still under the lock, reconcile slot positions against the host;
4. release the lock and notify observers with the ordered snapshot.

The tick only mutates the registry's workspaces and never inserts into
it, so a kill that lands mid-tick cannot be undone by the tick.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from anyio import to_thread
from loguru import logger

from agentdeck.supervisor.models.workspace import utcnow
from agentdeck.supervisor.monitor.reconcile import ReconcileReport, reconcile
from agentdeck.supervisor.monitor.status import DEFAULT_IDLE_THRESHOLD, apply_detection

if TYPE_CHECKING:
    from agentdeck.supervisor.host.base import AgentSpawner, SlotHost
    from agentdeck.supervisor.models.workspace import Workspace
    from agentdeck.supervisor.registry import WorkspaceRegistry

Observer = Callable[[list["Workspace"]], Awaitable[None]]
"""Async callback invoked after every tick with the ordered workspace snapshot."""

DEFAULT_POLL_INTERVAL = 3.0


class Poller:
    """Drives status detection and slot reconciliation on a fixed period."""

    def __init__(
        self,
        registry: WorkspaceRegistry,
        spawner: AgentSpawner,
        slots: SlotHost,
        *,
        interval: float = DEFAULT_POLL_INTERVAL,
        idle_threshold: timedelta = DEFAULT_IDLE_THRESHOLD,
        observers: Sequence[Observer] = (),
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._registry = registry
        self._spawner = spawner
        self._slots = slots
        self.interval = interval
        self.idle_threshold = idle_threshold
        self._observers: list[Observer] = list(observers)
        self._clock = clock
        self._task: asyncio.Task[None] | None = None

    def add_observer(self, observer: Observer) -> None:
        self._observers.append(observer)

    # -- Tick ------------------------------------------------------------------

    async def tick(self) -> ReconcileReport:
        """Run one detection + reconciliation pass and notify observers."""
        await to_thread.run_sync(self._spawner.refresh)

        async with self._registry.lock:
            now = self._clock()
            workspaces = self._registry.all_ordered()
            for workspace in workspaces:
                apply_detection(workspace, now=now, idle_threshold=self.idle_threshold)

            slots = await to_thread.run_sync(self._slots.list_slots)
            report = reconcile(self._registry.all_ordered(), slots)
            snapshot = self._registry.all_ordered()

        await self._notify(snapshot)
        return report

    async def _notify(self, snapshot: list[Workspace]) -> None:
        for observer in self._observers:
            try:
                await observer(snapshot)
            except Exception:
                logger.exception("Poller: observer {} failed", observer)

    # -- Lifecycle -------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run(), name="agentdeck-poller")
        logger.info(
            "Poller: started (interval={}s, idle_threshold={}s)", self.interval, self.idle_threshold.total_seconds()
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Poller: stopped")

    async def _run(self) -> None:
        while True:
            try:
                await self.tick()
            except Exception:
                # One bad tick must not stop supervision of every workspace.
                logger.exception("Poller: tick failed")
            await asyncio.sleep(self.interval)
