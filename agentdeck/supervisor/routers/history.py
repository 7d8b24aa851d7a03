"""Historical session endpoints (read-only listing + resume)."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status

from agentdeck.supervisor.deps import WorkspaceMgr
from agentdeck.supervisor.managers.workspaces import LaunchError
from agentdeck.supervisor.models.api import WorkspaceResponse
from agentdeck.supervisor.models.history import SessionSummary
from agentdeck.supervisor.models.workspace import Workspace

router = APIRouter(prefix="/history", tags=["history"])


@router.get("/list", response_model=list[SessionSummary])
async def list_history(
    manager: WorkspaceMgr,
    project: str | None = Query(None, description="Only sessions of this project path."),
    limit: int = Query(50, ge=1, le=500),
) -> list[SessionSummary]:
    """List past agent sessions, newest first."""
    return await manager.list_history(project, limit=limit)


@router.post("/{session_id}/resume", response_model=WorkspaceResponse, status_code=status.HTTP_201_CREATED)
async def resume_session(session_id: str, manager: WorkspaceMgr) -> Workspace:
    """Relaunch a past session in a new workspace."""
    try:
        return await manager.resume(session_id)
    except LookupError:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=f"Session '{session_id}' not found.") from None
    except LaunchError as exc:
        raise HTTPException(status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from None
