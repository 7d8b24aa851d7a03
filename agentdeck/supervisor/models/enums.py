"""Shared enumerations used across the supervisor."""

from __future__ import annotations

from enum import StrEnum

# -- Workspace ---------------------------------------------------------------


class WorkspaceStatus(StrEnum):
    """Inferred run state of a workspace's agent.

    Derived each poll tick from process liveness, exit code and output
    activity.  The agent reports nothing itself, so this is a heuristic.
    """

    RUNNING = "running"
    WAITING = "waiting"
    DONE = "done"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (WorkspaceStatus.DONE, WorkspaceStatus.ERROR)


# Decorative prefixes shown in slot labels.
STATUS_GLYPHS: dict[WorkspaceStatus, str] = {
    WorkspaceStatus.RUNNING: "▶",
    WorkspaceStatus.WAITING: "⏸",
    WorkspaceStatus.DONE: "✓",
    WorkspaceStatus.ERROR: "✗",
}
