"""API request / response schemas.

Thin schemas between HTTP and the live ``Workspace`` objects:

- **Request** schemas validate user input and provide defaults.
- **Update** schemas allow partial updates via ``exclude_unset``.
- **Response** schemas serialize live workspaces via ``from_attributes``.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from agentdeck.supervisor.models.enums import WorkspaceStatus

STATUS_NOTE = "Inferred from process liveness and output activity; approximate."

# ---------------------------------------------------------------------------
# Workspace
# ---------------------------------------------------------------------------


class WorkspaceLaunch(BaseModel):
    """Input for launching a new workspace."""

    name: str = Field(min_length=1, description="Base name; suffixed with -2, -3, ... if taken.")
    directory: Path | None = Field(default=None, description="Working directory; defaults to the repo dir.")
    worktree: bool = Field(default=False, description="Create a dedicated git worktree for the agent.")
    base_branch: str | None = None
    prompt: str | None = Field(default=None, description="Initial prompt passed to the agent.")
    external_ref: str | None = None


class WorkspaceKill(BaseModel):
    remove_worktree: bool = False


class WorkspaceUpdate(BaseModel):
    """Partial update -- only fields explicitly set by the caller are applied."""

    branch_name: str | None = None
    external_ref: str | None = None
    worktree_path: Path | None = None


class PullRequestCreate(BaseModel):
    title: str | None = None
    body: str | None = None


class PullRequestCreated(BaseModel):
    url: str


class WorkspaceResponse(BaseModel):
    """Serialized workspace returned to clients."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    workspace_dir: Path
    slot_position: int
    has_slot: bool
    status: WorkspaceStatus
    status_note: str = STATUS_NOTE
    last_activity_at: datetime
    branch_name: str | None = None
    is_worktree: bool = False
    worktree_path: Path | None = None
    external_ref: str | None = None
    session_id: str | None = None
    created_at: datetime
