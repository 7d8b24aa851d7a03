"""In-process workspace registry.

The authoritative set of active workspaces, keyed by unique name.
Ephemeral -- empty on process restart.  Finished workspaces are never
garbage-collected; they stay until explicitly killed.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from agentdeck.supervisor.host.base import AgentHandle
    from agentdeck.supervisor.models.workspace import Workspace


class DuplicateWorkspaceError(ValueError):
    """Raised when inserting a workspace whose name is already registered."""


class WorkspaceNotFoundError(LookupError):
    """Raised when a workspace is not found."""


class WorkspaceRegistry:
    """Registry of active workspaces, in insertion order.

    Every method runs on the event loop thread, so single operations are
    atomic with respect to each other.  Composite read-modify-write
    sequences that await in between (launch, kill, the poll tick) must hold
    ``lock`` for their whole span; it is the single synchronization boundary
    of the supervisor.
    """

    def __init__(self) -> None:
        self._workspaces: dict[str, Workspace] = {}
        self.lock = asyncio.Lock()

    # -- Mutation --------------------------------------------------------------

    def insert(self, workspace: Workspace) -> None:
        """Register a workspace.  Raises ``DuplicateWorkspaceError`` if the name is taken.

        Callers resolve collisions with ``unique_name`` first.
        """
        if workspace.name in self._workspaces:
            raise DuplicateWorkspaceError(workspace.name)
        logger.debug("Registry: insert workspace {} (dir={})", workspace.name, workspace.workspace_dir)
        self._workspaces[workspace.name] = workspace

    def remove(self, name: str) -> Workspace | None:
        workspace = self._workspaces.pop(name, None)
        if workspace:
            logger.debug("Registry: remove workspace {}", name)
        return workspace

    # -- Query -----------------------------------------------------------------

    def find_by_name(self, name: str) -> Workspace | None:
        return self._workspaces.get(name)

    def get(self, name: str) -> Workspace:
        """Like ``find_by_name`` but raises ``WorkspaceNotFoundError``."""
        workspace = self._workspaces.get(name)
        if workspace is None:
            raise WorkspaceNotFoundError(name)
        return workspace

    def find_by_slot(self, position: int) -> Workspace | None:
        """Return the workspace whose cached slot position is *position*, if any."""
        if position < 0:
            return None
        for w in self._workspaces.values():
            if w.slot_position == position:
                return w
        return None

    def find_by_handle(self, handle: AgentHandle) -> Workspace | None:
        for w in self._workspaces.values():
            if w.agent_handle is not None and w.agent_handle is handle:
                return w
        return None

    def all_ordered(self) -> list[Workspace]:
        """Return a snapshot of all workspaces in insertion order."""
        return list(self._workspaces.values())

    def unique_name(self, base: str) -> str:
        """Return *base* if unused, otherwise the first free ``base-2``, ``base-3``, ..."""
        if base not in self._workspaces:
            return base
        suffix = 2
        while f"{base}-{suffix}" in self._workspaces:
            suffix += 1
        return f"{base}-{suffix}"

    def __len__(self) -> int:
        return len(self._workspaces)

    def __contains__(self, name: object) -> bool:
        return name in self._workspaces
