"""Tests for the in-memory workspace registry."""

from __future__ import annotations

from pathlib import Path

import pytest

from agentdeck.supervisor.models.workspace import INVALID_SLOT, Workspace
from agentdeck.supervisor.registry import DuplicateWorkspaceError, WorkspaceNotFoundError, WorkspaceRegistry
from tests.supervisor.fakes import FakeHandle


def _ws(name: str, slot: int = INVALID_SLOT, handle: FakeHandle | None = None) -> Workspace:
    return Workspace(name=name, workspace_dir=Path("/work") / name, slot_position=slot, agent_handle=handle)


def test_insert_and_find() -> None:
    registry = WorkspaceRegistry()
    ws = _ws("auth-fix")
    registry.insert(ws)

    assert registry.find_by_name("auth-fix") is ws
    assert registry.get("auth-fix") is ws
    assert "auth-fix" in registry
    assert len(registry) == 1


def test_insert_duplicate_rejected() -> None:
    registry = WorkspaceRegistry()
    registry.insert(_ws("auth-fix"))
    with pytest.raises(DuplicateWorkspaceError):
        registry.insert(_ws("auth-fix"))
    assert len(registry) == 1


def test_get_unknown_raises() -> None:
    with pytest.raises(WorkspaceNotFoundError):
        WorkspaceRegistry().get("nope")


def test_remove() -> None:
    registry = WorkspaceRegistry()
    ws = _ws("a")
    registry.insert(ws)
    assert registry.remove("a") is ws
    assert registry.remove("a") is None
    assert registry.find_by_name("a") is None


def test_unique_name_suffixes() -> None:
    registry = WorkspaceRegistry()
    assert registry.unique_name("auth-fix") == "auth-fix"

    registry.insert(_ws("auth-fix"))
    assert registry.unique_name("auth-fix") == "auth-fix-2"

    registry.insert(_ws("auth-fix-2"))
    assert registry.unique_name("auth-fix") == "auth-fix-3"


def test_find_by_slot_ignores_invalid() -> None:
    registry = WorkspaceRegistry()
    registry.insert(_ws("orphan"))
    registry.insert(_ws("placed", slot=2))

    assert registry.find_by_slot(2).name == "placed"
    assert registry.find_by_slot(INVALID_SLOT) is None
    assert registry.find_by_slot(5) is None


def test_find_by_handle_uses_identity() -> None:
    registry = WorkspaceRegistry()
    h1, h2 = FakeHandle(), FakeHandle()
    registry.insert(_ws("one", handle=h1))
    registry.insert(_ws("none"))

    assert registry.find_by_handle(h1).name == "one"
    assert registry.find_by_handle(h2) is None


def test_all_ordered_is_insertion_order_snapshot() -> None:
    registry = WorkspaceRegistry()
    for name in ("c", "a", "b"):
        registry.insert(_ws(name))

    snapshot = registry.all_ordered()
    assert [w.name for w in snapshot] == ["c", "a", "b"]

    registry.remove("a")
    assert [w.name for w in snapshot] == ["c", "a", "b"]
    assert [w.name for w in registry.all_ordered()] == ["c", "b"]


def test_worktree_fields_in_lockstep() -> None:
    with pytest.raises(ValueError, match="worktree_path"):
        Workspace(name="x", workspace_dir=Path("/w"), is_worktree=True)
    with pytest.raises(ValueError, match="worktree_path"):
        Workspace(name="x", workspace_dir=Path("/w"), worktree_path=Path("/w"))

    ws = _ws("x")
    ws.attach_worktree(Path("/r/.agents-worktrees/x"), "agents/x")
    assert ws.is_worktree
    assert ws.branch_name == "agents/x"
    ws.detach_worktree()
    assert not ws.is_worktree
    assert ws.worktree_path is None
