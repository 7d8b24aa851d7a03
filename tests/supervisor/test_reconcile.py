"""Tests for slot position reconciliation."""

from __future__ import annotations

from pathlib import Path

import pytest

from agentdeck.supervisor.host.base import Slot
from agentdeck.supervisor.models.enums import WorkspaceStatus
from agentdeck.supervisor.models.workspace import INVALID_SLOT, Workspace
from agentdeck.supervisor.monitor.reconcile import reconcile, status_label, strip_decoration


def _ws(name: str, slot: int = INVALID_SLOT) -> Workspace:
    return Workspace(name=name, workspace_dir=Path("/work") / name, slot_position=slot)


def _slots(*labels: str) -> list[Slot]:
    return [Slot(i, label) for i, label in enumerate(labels)]


@pytest.mark.parametrize(
    ("label", "expected"),
    [
        ("▶ auth-fix", "auth-fix"),
        ("⏸ api-tests", "api-tests"),
        ("✓  done-thing", "done-thing"),
        ("auth-fix", "auth-fix"),
        ("Dashboard", "Dashboard"),
    ],
)
def test_strip_decoration(label: str, expected: str) -> None:
    assert strip_decoration(label) == expected


def test_status_label() -> None:
    ws = _ws("auth-fix")
    assert status_label(ws) == "▶ auth-fix"
    ws.status = WorkspaceStatus.ERROR
    assert status_label(ws) == "✗ auth-fix"


def test_closing_a_slot_orphans_and_shifts() -> None:
    auth, api = _ws("auth-fix"), _ws("api-tests")

    report = reconcile([auth, api], _slots("Dashboard", "▶ auth-fix", "⏸ api-tests"))
    assert (auth.slot_position, api.slot_position) == (1, 2)
    assert report.orphaned == []

    # The user closes slot 1 out of band.
    report = reconcile([auth, api], _slots("Dashboard", "⏸ api-tests"))

    assert auth.slot_position == INVALID_SLOT
    assert not auth.has_slot
    assert api.slot_position == 1
    assert report.orphaned == ["auth-fix"]
    assert report.moved == ["api-tests"]


def test_reconcile_is_idempotent() -> None:
    workspaces = [_ws("a"), _ws("b")]
    slots = _slots("Dashboard", "b", "a")
    first = reconcile(workspaces, slots).positions
    second = reconcile(workspaces, slots)
    assert second.positions == first == {"a": 2, "b": 1}
    assert second.moved == []


def test_reordered_slots_follow_labels() -> None:
    a, b = _ws("a", slot=1), _ws("b", slot=2)
    reconcile([a, b], _slots("Dashboard", "▶ b", "▶ a"))
    assert (a.slot_position, b.slot_position) == (2, 1)


@pytest.mark.parametrize("label", ["auth-fix ●", "● auth-fix *", "[auth-fix]"])
def test_trailing_decoration_fallback(label: str) -> None:
    ws = _ws("auth-fix")
    reconcile([ws], _slots("Dashboard", label))
    assert ws.slot_position == 1


@pytest.mark.parametrize(
    ("name", "labels"),
    [
        ("a", ("Dashboard",)),
        ("api", ("⏸ api-tests",)),
        ("auth-fix", ("auth-fix (renamed)",)),
        ("fix", ("Dashboard", "▶ auth-fix")),
    ],
)
def test_name_inside_other_words_is_orphaned(name: str, labels: tuple[str, ...]) -> None:
    ws = _ws(name, slot=0)
    report = reconcile([ws], _slots(*labels))
    assert ws.slot_position == INVALID_SLOT
    assert report.orphaned == [name]


def test_each_slot_claimed_once() -> None:
    first, second = _ws("build"), _ws("build-2")
    reconcile([first, second], _slots("Dashboard", "▶ build-2"))
    # Exact match wins slot 1 for build-2; "build" finds nothing left to claim.
    assert second.slot_position == 1
    assert first.slot_position == INVALID_SLOT


def test_exact_match_beats_substring() -> None:
    api, api_tests = _ws("api"), _ws("api-tests")
    reconcile([api, api_tests], _slots("▶ api-tests", "⏸ api"))
    assert api_tests.slot_position == 0
    assert api.slot_position == 1
