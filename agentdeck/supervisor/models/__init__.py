"""Data models for the supervisor."""

from agentdeck.supervisor.models.api import (
    PullRequestCreate,
    PullRequestCreated,
    WorkspaceKill,
    WorkspaceLaunch,
    WorkspaceResponse,
    WorkspaceUpdate,
)
from agentdeck.supervisor.models.enums import STATUS_GLYPHS, WorkspaceStatus
from agentdeck.supervisor.models.history import SessionSummary
from agentdeck.supervisor.models.tracker import Issue, PullRequest
from agentdeck.supervisor.models.workspace import INVALID_SLOT, Workspace

__all__ = [
    "INVALID_SLOT",
    "STATUS_GLYPHS",
    # Tracker
    "Issue",
    "PullRequest",
    # API schemas
    "PullRequestCreate",
    "PullRequestCreated",
    # History
    "SessionSummary",
    # Workspace
    "Workspace",
    "WorkspaceKill",
    "WorkspaceLaunch",
    "WorkspaceResponse",
    # Enums
    "WorkspaceStatus",
    "WorkspaceUpdate",
]
