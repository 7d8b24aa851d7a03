"""Fixtures wiring the supervisor to in-memory collaborators."""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from agentdeck.supervisor.app import app
from agentdeck.supervisor.history import SessionHistory
from agentdeck.supervisor.managers.workspaces import WorkspaceManager
from agentdeck.supervisor.managers.worktrees import WorktreeManager
from agentdeck.supervisor.monitor.observers import EventBroadcaster
from agentdeck.supervisor.registry import WorkspaceRegistry
from tests.supervisor.fakes import FakeGit, FakeHost, FakeTracker


@pytest.fixture
def repo_dir(tmp_path: Path) -> Path:
    path = (tmp_path / "repo").resolve()
    path.mkdir()
    return path


@pytest.fixture
def history_dir(tmp_path: Path) -> Path:
    path = tmp_path / "history"
    path.mkdir()
    return path


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def git(repo_dir: Path) -> FakeGit:
    return FakeGit(repo_dir)


@pytest.fixture
def tracker() -> FakeTracker:
    return FakeTracker()


@pytest.fixture
def registry() -> WorkspaceRegistry:
    return WorkspaceRegistry()


@pytest.fixture
def manager(
    registry: WorkspaceRegistry,
    host: FakeHost,
    git: FakeGit,
    tracker: FakeTracker,
    repo_dir: Path,
    history_dir: Path,
) -> WorkspaceManager:
    return WorkspaceManager(
        registry,
        host,
        host,
        worktrees=WorktreeManager(git),
        git=git,
        tracker=tracker,
        history=SessionHistory(history_dir),
        repo_dir=repo_dir,
    )


@pytest.fixture
async def client(manager: WorkspaceManager) -> AsyncIterator[AsyncClient]:
    """Async HTTP client wired to the app with a fake-backed manager.

    The app lifespan does NOT run under ``ASGITransport``, so state fields
    are pre-set here.
    """
    app.state.workspace_manager = manager
    app.state.events = EventBroadcaster()
    app.state.poller = None

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.state.workspace_manager = None
    app.state.events = None
