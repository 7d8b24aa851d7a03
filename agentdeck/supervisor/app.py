from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

from anyio import to_thread
from fastapi import FastAPI
from fastapi.routing import APIRouter
from loguru import logger
from sse_starlette.sse import AppStatus

from agentdeck.supervisor.history import SessionHistory
from agentdeck.supervisor.host.tmux import TmuxError, TmuxHost
from agentdeck.supervisor.log import setup_logging
from agentdeck.supervisor.managers.workspaces import WorkspaceManager
from agentdeck.supervisor.managers.worktrees import WorktreeManager
from agentdeck.supervisor.monitor.observers import EventBroadcaster, SlotLabeler
from agentdeck.supervisor.monitor.poller import Poller
from agentdeck.supervisor.registry import WorkspaceRegistry
from agentdeck.supervisor.settings import get_settings
from agentdeck.supervisor.tracker import GitHubTracker
from agentdeck.supervisor.vcs import GitClient


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    # -- Startup ---------------------------------------------------------------
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_file)

    logger.info("agentdeck supervisor starting (host={}, port={})", settings.host, settings.port)
    logger.info("Repository: {} (worktrees under {})", settings.repo_dir, settings.worktree_root)

    # -- Initialise state fields (always present, possibly None) ----------------
    _app.state.workspace_manager = None
    _app.state.events = None
    _app.state.poller = None

    # -- Host ------------------------------------------------------------------
    host = TmuxHost(
        settings.tmux_session,
        agent_command=settings.agent_command,
        dashboard_label=settings.dashboard_label,
    )
    if host.available:
        try:
            await to_thread.run_sync(host.ensure_session)
        except TmuxError as exc:
            logger.warning("tmux: could not create session {}: {}", settings.tmux_session, exc)
    else:
        logger.warning("tmux not found on PATH -- launches will fail until it is installed")

    # -- Collaborators ---------------------------------------------------------
    git = GitClient()
    tracker = GitHubTracker(settings.repo, cwd=settings.repo_dir)
    if not tracker.available:
        logger.warning("gh CLI not found -- issue / PR features disabled")

    registry = WorkspaceRegistry()
    manager = WorkspaceManager(
        registry,
        host,
        host,
        worktrees=WorktreeManager(git, worktree_root=settings.worktree_root),
        git=git,
        tracker=tracker,
        history=SessionHistory(settings.history_dir),
        repo_dir=settings.repo_dir,
    )
    _app.state.workspace_manager = manager

    # -- Poller ----------------------------------------------------------------
    events = EventBroadcaster()
    observers = [SlotLabeler(registry, host)] if settings.label_slots else []
    observers.append(events)
    poller = Poller(
        registry,
        host,
        host,
        interval=settings.poll_interval,
        idle_threshold=timedelta(seconds=settings.idle_threshold),
        observers=observers,
    )
    _app.state.events = events
    _app.state.poller = poller
    poller.start()

    # Let SSE streams end with the app instead of draining on their own.
    AppStatus.disable_automatic_graceful_drain()

    yield

    # -- Shutdown --------------------------------------------------------------
    logger.info("agentdeck supervisor shutting down (workspaces={})", len(registry))
    await poller.stop()
    AppStatus.should_exit = True
    # By default agents keep running in tmux; only an explicit kill tears them down.
    await manager.shutdown(kill_all=settings.kill_on_exit)


app = FastAPI(title="agentdeck supervisor", lifespan=lifespan)

# ---------------------------------------------------------------------------
# API router -- all endpoints live under /api
# ---------------------------------------------------------------------------
api = APIRouter(prefix="/api")


@api.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


from agentdeck.supervisor.routers.history import router as history_router  # noqa: E402
from agentdeck.supervisor.routers.tracker import router as tracker_router  # noqa: E402
from agentdeck.supervisor.routers.workspaces import router as workspaces_router  # noqa: E402

api.include_router(workspaces_router)
api.include_router(tracker_router)
api.include_router(history_router)

app.include_router(api)
