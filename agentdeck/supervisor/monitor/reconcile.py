"""Slot position reconciliation.

The host's slot list is owned by the user as much as by us: slots get
closed, reordered and created out of band.  Rather than tracking positions
incrementally, every reconciliation rescans the live list and re-derives
each workspace's ``slot_position`` by matching slot labels to names.

Labels carry a decorative status prefix (``"▶ auth-fix"``), so matching
first strips leading glyphs and compares for equality, then falls back to
finding the name inside the label with only decoration around it
(``"auth-fix ●"``).  A label that merely contains the name among other
words (``"Dashboard"`` for ``"a"``) never matches.  Each slot is claimed
by at most one workspace.  A workspace left without a slot is *orphaned*:
its position becomes ``INVALID_SLOT`` and slot-targeting operations on it
fail with ``OrphanedWorkspaceError``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from loguru import logger

from agentdeck.supervisor.models.enums import STATUS_GLYPHS
from agentdeck.supervisor.models.workspace import INVALID_SLOT

if TYPE_CHECKING:
    from agentdeck.supervisor.host.base import Slot
    from agentdeck.supervisor.models.workspace import Workspace

# Leading run of non-word characters (status glyphs, bullets) plus spaces.
_DECORATION_RE = re.compile(r"^[^\w]*\s*")


def _decorated(name: str) -> re.Pattern[str]:
    return re.compile(rf"^[^\w]*{re.escape(name)}[^\w]*$")


class OrphanedWorkspaceError(RuntimeError):
    """Raised when targeting the slot of a workspace that has none."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Workspace '{name}' has no matching slot (it was closed or renamed outside agentdeck).")
        self.name = name


@dataclass
class ReconcileReport:
    positions: dict[str, int] = field(default_factory=dict)
    orphaned: list[str] = field(default_factory=list)
    moved: list[str] = field(default_factory=list)


def strip_decoration(label: str) -> str:
    """Remove a leading status indicator from a slot label."""
    return _DECORATION_RE.sub("", label, count=1).strip()


def status_label(workspace: Workspace) -> str:
    """Decorated slot label for a workspace, e.g. ``"▶ auth-fix"``."""
    return f"{STATUS_GLYPHS[workspace.status]} {workspace.name}"


def _match(workspaces: Sequence[Workspace], slots: Sequence[Slot]) -> dict[str, int]:
    matched: dict[str, int] = {}
    claimed: set[int] = set()

    # Pass 1: exact name once decoration is stripped.
    by_label: dict[str, list[int]] = {}
    for slot in slots:
        by_label.setdefault(strip_decoration(slot.label), []).append(slot.index)
    for w in workspaces:
        for index in by_label.get(w.name, ()):
            if index not in claimed:
                matched[w.name] = index
                claimed.add(index)
                break

    # Pass 2: the name surrounded by decoration only, e.g. a trailing marker.
    for w in workspaces:
        if w.name in matched:
            continue
        pattern = _decorated(w.name)
        for slot in slots:
            if slot.index not in claimed and pattern.match(slot.label):
                matched[w.name] = slot.index
                claimed.add(slot.index)
                break

    return matched


def reconcile(workspaces: Iterable[Workspace], slots: Sequence[Slot]) -> ReconcileReport:
    """Re-derive ``slot_position`` for every workspace from the live slot list."""
    workspaces = list(workspaces)
    matched = _match(workspaces, slots)
    report = ReconcileReport()

    for w in workspaces:
        position = matched.get(w.name, INVALID_SLOT)
        if position == INVALID_SLOT:
            report.orphaned.append(w.name)
            if w.slot_position != INVALID_SLOT:
                logger.warning("Workspace {} lost its slot (was {}), marking orphaned", w.name, w.slot_position)
        elif position != w.slot_position:
            report.moved.append(w.name)
            logger.debug("Workspace {}: slot {} -> {}", w.name, w.slot_position, position)
        w.slot_position = position
        report.positions[w.name] = position

    return report
