"""FastAPI dependency injection for the workspace manager and event stream.

Usage in route handlers::

    @router.get("/things")
    async def list_things(manager: WorkspaceMgr) -> list[Thing]:
        ...

Dependencies raise HTTP 503 if the lifespan did not initialise the
backing object.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from agentdeck.supervisor.managers.workspaces import WorkspaceManager
from agentdeck.supervisor.monitor.observers import EventBroadcaster


def get_manager(request: Request) -> WorkspaceManager:
    manager: WorkspaceManager | None = request.app.state.workspace_manager
    if manager is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Workspace manager not initialised.",
        )
    return manager


def get_events(request: Request) -> EventBroadcaster:
    events: EventBroadcaster | None = request.app.state.events
    if events is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Event stream not initialised.",
        )
    return events


# -- Annotated type aliases for concise route signatures ---------------------

WorkspaceMgr = Annotated[WorkspaceManager, Depends(get_manager)]
"""Annotated dependency: the process-wide workspace manager."""

Events = Annotated[EventBroadcaster, Depends(get_events)]
"""Annotated dependency: per-tick workspace snapshot broadcaster."""
