"""Remote tracker records (issues and pull requests)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Issue(BaseModel):
    number: int
    title: str
    body: str = ""


class PullRequest(BaseModel):
    """Open pull request.  ``head_branch`` maps from ``gh``'s ``headRefName``."""

    model_config = ConfigDict(populate_by_name=True)

    number: int
    title: str
    head_branch: str = Field(alias="headRefName")
    body: str = ""
