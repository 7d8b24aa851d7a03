"""Workspace endpoints (RPC-style).

Thin HTTP adapter -- delegates to the workspace manager.  All write
operations use POST; reads use GET.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator

from fastapi import APIRouter, HTTPException, status
from sse_starlette.sse import EventSourceResponse

from agentdeck.supervisor.deps import Events, WorkspaceMgr
from agentdeck.supervisor.managers.workspaces import LaunchError
from agentdeck.supervisor.models.api import (
    PullRequestCreate,
    PullRequestCreated,
    WorkspaceKill,
    WorkspaceLaunch,
    WorkspaceResponse,
    WorkspaceUpdate,
)
from agentdeck.supervisor.models.workspace import Workspace
from agentdeck.supervisor.monitor.reconcile import OrphanedWorkspaceError
from agentdeck.supervisor.registry import WorkspaceNotFoundError
from agentdeck.supervisor.tracker import TrackerError, TrackerUnavailableError
from agentdeck.supervisor.vcs import GitError

router = APIRouter(prefix="/workspaces", tags=["workspaces"])


def _not_found(name: str) -> HTTPException:
    return HTTPException(status.HTTP_404_NOT_FOUND, detail=f"Workspace '{name}' not found.")


@router.get("/list", response_model=list[WorkspaceResponse])
async def list_workspaces(manager: WorkspaceMgr) -> list[Workspace]:
    """List all workspaces in launch order."""
    return manager.registry.all_ordered()


@router.get("/events")
async def workspace_events(manager: WorkspaceMgr, events: Events) -> EventSourceResponse:
    """Stream a workspace snapshot after every poll tick (Server-Sent Events)."""

    async def _stream() -> AsyncIterator[dict]:
        async with events.subscribe() as queue:
            workspaces = manager.registry.all_ordered()
            initial = [WorkspaceResponse.model_validate(w).model_dump(mode="json") for w in workspaces]
            yield {"event": "workspaces", "data": json.dumps(initial)}
            while True:
                payload = await queue.get()
                yield {"event": "workspaces", "data": json.dumps(payload)}

    return EventSourceResponse(_stream())


@router.get("/{name}/get", response_model=WorkspaceResponse)
async def get_workspace(name: str, manager: WorkspaceMgr) -> Workspace:
    workspace = manager.registry.find_by_name(name)
    if workspace is None:
        raise _not_found(name)
    return workspace


@router.post("/launch", response_model=WorkspaceResponse, status_code=status.HTTP_201_CREATED)
async def launch_workspace(body: WorkspaceLaunch, manager: WorkspaceMgr) -> Workspace:
    """Launch a new agent workspace (name is disambiguated if taken)."""
    try:
        return await manager.launch(
            body.name,
            body.directory,
            worktree=body.worktree,
            base_branch=body.base_branch,
            prompt=body.prompt,
            external_ref=body.external_ref,
        )
    except LaunchError as exc:
        raise HTTPException(status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from None


@router.post("/{name}/kill", status_code=status.HTTP_204_NO_CONTENT)
async def kill_workspace(name: str, manager: WorkspaceMgr, body: WorkspaceKill | None = None) -> None:
    """Terminate the agent, close its slot and drop the workspace."""
    remove_worktree = body.remove_worktree if body else False
    try:
        await manager.kill(name, remove_worktree=remove_worktree)
    except WorkspaceNotFoundError:
        raise _not_found(name) from None


@router.post("/{name}/switch", response_model=WorkspaceResponse)
async def switch_workspace(name: str, manager: WorkspaceMgr) -> Workspace:
    """Select the workspace's slot in the host UI."""
    try:
        return await manager.switch_to(name)
    except WorkspaceNotFoundError:
        raise _not_found(name) from None
    except OrphanedWorkspaceError as exc:
        raise HTTPException(status.HTTP_409_CONFLICT, detail=str(exc)) from None


@router.post("/{name}/update", response_model=WorkspaceResponse)
async def update_workspace(name: str, body: WorkspaceUpdate, manager: WorkspaceMgr) -> Workspace:
    """Partially update branch / external ref / worktree attributes."""
    changes = body.model_dump(exclude_unset=True)
    try:
        return await manager.update_workspace(name, **changes)
    except WorkspaceNotFoundError:
        raise _not_found(name) from None


@router.post("/{name}/pr", response_model=PullRequestCreated, status_code=status.HTTP_201_CREATED)
async def create_pull_request(name: str, body: PullRequestCreate, manager: WorkspaceMgr) -> PullRequestCreated:
    """Push the workspace branch and open a pull request."""
    try:
        url = await manager.create_pr(name, title=body.title, body=body.body)
    except WorkspaceNotFoundError:
        raise _not_found(name) from None
    except TrackerUnavailableError as exc:
        raise HTTPException(status.HTTP_412_PRECONDITION_FAILED, detail=str(exc)) from None
    except ValueError as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail=str(exc)) from None
    except (GitError, TrackerError) as exc:
        raise HTTPException(status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from None
    return PullRequestCreated(url=url)
