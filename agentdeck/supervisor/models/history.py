"""Historical agent session summaries (read-only)."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SessionSummary(BaseModel):
    """One entry of a per-project ``sessions-index.json``.

    Field aliases follow the on-disk camelCase keys written by the agent.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    session_id: str = Field(alias="sessionId")
    project: str | None = Field(default=None, alias="projectPath")
    branch: str | None = Field(default=None, alias="gitBranch")
    first_prompt: str | None = Field(default=None, alias="firstPrompt")
    modified_at: datetime | None = Field(default=None, alias="modified")
