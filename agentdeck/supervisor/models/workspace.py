"""Workspace entity.

A workspace pairs one supervised agent process with one directory (plain or
a dedicated git worktree) and one host UI slot.  It is live in-memory state
owned by the ``WorkspaceRegistry``; nothing here is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from agentdeck.supervisor.models.enums import WorkspaceStatus

if TYPE_CHECKING:
    from agentdeck.supervisor.host.base import AgentHandle

INVALID_SLOT = -1
"""Sentinel slot position for a workspace with no matching host slot."""


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(eq=False)
class Workspace:
    """One managed agent workspace.

    ``slot_position`` is an advisory cache re-derived by the reconciler from
    the host's live slot list; never trust it without reconciling first.
    ``status`` is recomputed every poll tick and never set by user action.
    """

    # -- Identity --------------------------------------------------------------
    name: str
    workspace_dir: Path

    # -- Live references -------------------------------------------------------
    agent_handle: AgentHandle | None = None
    slot_position: int = INVALID_SLOT

    # -- Inferred state --------------------------------------------------------
    status: WorkspaceStatus = WorkspaceStatus.RUNNING
    last_activity_at: datetime = field(default_factory=utcnow)
    activity_fingerprint: Any = None

    # -- Version control / tracker ---------------------------------------------
    branch_name: str | None = None
    is_worktree: bool = False
    worktree_path: Path | None = None
    external_ref: str | None = None
    session_id: str | None = None
    """Historical agent session this workspace resumed, if any."""

    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        if self.is_worktree != (self.worktree_path is not None):
            msg = f"Workspace '{self.name}': worktree_path must be set iff is_worktree"
            raise ValueError(msg)

    @property
    def has_slot(self) -> bool:
        return self.slot_position != INVALID_SLOT

    def attach_worktree(self, path: Path, branch: str | None = None) -> None:
        """Mark the workspace as worktree-backed (keeps both fields in lockstep)."""
        self.is_worktree = True
        self.worktree_path = path
        if branch is not None:
            self.branch_name = branch

    def detach_worktree(self) -> None:
        self.is_worktree = False
        self.worktree_path = None
