"""Tracker endpoints: browse open issues / PRs and launch workspaces from them."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from agentdeck.supervisor.deps import WorkspaceMgr
from agentdeck.supervisor.managers.workspaces import LaunchError
from agentdeck.supervisor.models.api import WorkspaceResponse
from agentdeck.supervisor.models.tracker import Issue, PullRequest
from agentdeck.supervisor.models.workspace import Workspace
from agentdeck.supervisor.tracker import TrackerError, TrackerUnavailableError

router = APIRouter(prefix="/tracker", tags=["tracker"])


def _tracker_http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, TrackerUnavailableError):
        return HTTPException(status.HTTP_412_PRECONDITION_FAILED, detail=str(exc))
    if isinstance(exc, LookupError):
        return HTTPException(status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, LaunchError):
        return HTTPException(status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    return HTTPException(status.HTTP_502_BAD_GATEWAY, detail=str(exc))


@router.get("/issues", response_model=list[Issue])
async def list_issues(manager: WorkspaceMgr) -> list[Issue]:
    try:
        return await manager.list_issues()
    except TrackerError as exc:
        raise _tracker_http_error(exc) from None


@router.get("/prs", response_model=list[PullRequest])
async def list_prs(manager: WorkspaceMgr) -> list[PullRequest]:
    try:
        return await manager.list_prs()
    except TrackerError as exc:
        raise _tracker_http_error(exc) from None


@router.post("/issues/{number}/launch", response_model=WorkspaceResponse, status_code=status.HTTP_201_CREATED)
async def launch_from_issue(number: int, manager: WorkspaceMgr) -> Workspace:
    """Launch a worktree workspace for an open issue."""
    try:
        return await manager.launch_from_issue(number)
    except (TrackerError, LookupError, LaunchError) as exc:
        raise _tracker_http_error(exc) from None


@router.post("/prs/{number}/launch", response_model=WorkspaceResponse, status_code=status.HTTP_201_CREATED)
async def launch_from_pr(number: int, manager: WorkspaceMgr) -> Workspace:
    """Launch a worktree workspace on an open pull request's head branch."""
    try:
        return await manager.launch_from_pr(number)
    except (TrackerError, LookupError, LaunchError) as exc:
        raise _tracker_http_error(exc) from None
