"""Poll-tick observers: slot relabelling and event fan-out for dashboards."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING

from anyio import to_thread
from loguru import logger

from agentdeck.supervisor.models.api import WorkspaceResponse
from agentdeck.supervisor.monitor.reconcile import status_label, strip_decoration

if TYPE_CHECKING:
    from agentdeck.supervisor.host.base import SlotHost
    from agentdeck.supervisor.models.workspace import Workspace
    from agentdeck.supervisor.registry import WorkspaceRegistry


class SlotLabeler:
    """Rename slots so their prefix shows each workspace's status.

    Re-reads the slot list under the registry lock and only renames a slot
    whose (undecorated) label still names the workspace, so a slot that
    moved since the tick is never mislabelled.
    """

    def __init__(self, registry: WorkspaceRegistry, slots: SlotHost) -> None:
        self._registry = registry
        self._slots = slots

    async def __call__(self, snapshot: list[Workspace]) -> None:
        async with self._registry.lock:
            labels = {s.index: s.label for s in await to_thread.run_sync(self._slots.list_slots)}
            for workspace in self._registry.all_ordered():
                current = labels.get(workspace.slot_position)
                if current is None or strip_decoration(current) != workspace.name:
                    continue
                wanted = status_label(workspace)
                if current != wanted:
                    await to_thread.run_sync(self._slots.rename_slot, workspace.slot_position, wanted)


class EventBroadcaster:
    """Fan out per-tick workspace snapshots to any number of subscribers.

    Each subscriber gets a bounded queue; a slow subscriber drops its oldest
    snapshot rather than blocking the poller.
    """

    def __init__(self, maxsize: int = 16) -> None:
        self._maxsize = maxsize
        self._queues: set[asyncio.Queue[list[dict]]] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._queues)

    async def __call__(self, snapshot: list[Workspace]) -> None:
        payload = [WorkspaceResponse.model_validate(w).model_dump(mode="json") for w in snapshot]
        for queue in self._queues:
            if queue.full():
                with contextlib.suppress(asyncio.QueueEmpty):
                    queue.get_nowait()
            queue.put_nowait(payload)

    @contextlib.asynccontextmanager
    async def subscribe(self) -> AsyncIterator[asyncio.Queue[list[dict]]]:
        queue: asyncio.Queue[list[dict]] = asyncio.Queue(maxsize=self._maxsize)
        self._queues.add(queue)
        logger.debug("Events: subscriber added ({} total)", len(self._queues))
        try:
            yield queue
        finally:
            self._queues.discard(queue)
            logger.debug("Events: subscriber removed ({} total)", len(self._queues))
