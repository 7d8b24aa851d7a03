"""Tests for poll-tick observers."""

from __future__ import annotations

from pathlib import Path

from agentdeck.supervisor.managers.workspaces import WorkspaceManager
from agentdeck.supervisor.models.enums import WorkspaceStatus
from agentdeck.supervisor.monitor.observers import EventBroadcaster, SlotLabeler
from agentdeck.supervisor.monitor.poller import Poller
from tests.supervisor.fakes import FakeHost

# ---------------------------------------------------------------------------
# SlotLabeler
# ---------------------------------------------------------------------------


async def test_labeler_prefixes_status(manager: WorkspaceManager, host: FakeHost, repo_dir: Path) -> None:
    ws = await manager.launch("auth-fix", repo_dir)
    labeler = SlotLabeler(manager.registry, host)

    await labeler(manager.registry.all_ordered())
    assert host.labels == ["Dashboard", "▶ auth-fix"]

    ws.status = WorkspaceStatus.WAITING
    await labeler(manager.registry.all_ordered())
    assert host.labels == ["Dashboard", "⏸ auth-fix"]


async def test_labeler_skips_slot_renamed_by_user(manager: WorkspaceManager, host: FakeHost, repo_dir: Path) -> None:
    await manager.launch("auth-fix", repo_dir)
    await manager.reconcile()
    host.rename_slot(1, "auth-fix (mine)")

    await SlotLabeler(manager.registry, host)(manager.registry.all_ordered())

    assert host.labels == ["Dashboard", "auth-fix (mine)"]


async def test_labeler_as_poller_observer(manager: WorkspaceManager, host: FakeHost, repo_dir: Path) -> None:
    await manager.launch("a", repo_dir)
    await manager.launch("b", repo_dir)
    poller = Poller(manager.registry, host, host, observers=[SlotLabeler(manager.registry, host)])

    await poller.tick()
    # Relabelled slots still reconcile to the same positions.
    report = await poller.tick()

    assert host.labels == ["Dashboard", "▶ a", "▶ b"]
    assert report.positions == {"a": 1, "b": 2}


# ---------------------------------------------------------------------------
# EventBroadcaster
# ---------------------------------------------------------------------------


async def test_broadcaster_fans_out(manager: WorkspaceManager, repo_dir: Path) -> None:
    await manager.launch("auth-fix", repo_dir)
    events = EventBroadcaster()

    async with events.subscribe() as q1, events.subscribe() as q2:
        assert events.subscriber_count == 2
        await events(manager.registry.all_ordered())
        p1, p2 = q1.get_nowait(), q2.get_nowait()

    assert events.subscriber_count == 0
    assert p1 == p2
    assert p1[0]["name"] == "auth-fix"
    assert p1[0]["status"] == "running"
    assert p1[0]["has_slot"] is True


async def test_broadcaster_drops_oldest_when_full(manager: WorkspaceManager, repo_dir: Path) -> None:
    events = EventBroadcaster(maxsize=1)

    async with events.subscribe() as queue:
        await events([])
        await manager.launch("late", repo_dir)
        await events(manager.registry.all_ordered())

        assert queue.qsize() == 1
        latest = queue.get_nowait()

    assert [w["name"] for w in latest] == ["late"]
