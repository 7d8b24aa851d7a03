"""Workspace manager -- orchestrates workspace lifecycle across the collaborators.

The WorkspaceManager is a process-level singleton initialised in the app
lifespan.  It coordinates:

- **Registry**: the in-memory set of live workspaces
- **Host**: agent spawning and UI slots (``AgentSpawner`` / ``SlotHost``)
- **Worktrees**: isolated git checkouts for worktree-backed workspaces
- **Tracker / History**: read-only sources workspaces can be launched from

Every read-modify-write sequence holds ``registry.lock`` so it never
interleaves with a poll tick.  Blocking collaborator calls go through
``anyio.to_thread``.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING, Any

from anyio import to_thread
from loguru import logger

from agentdeck.supervisor.host.base import SlotError, SpawnError
from agentdeck.supervisor.managers.worktrees import WorktreeError, WorktreeManager, branch_for
from agentdeck.supervisor.models.enums import WorkspaceStatus
from agentdeck.supervisor.models.workspace import Workspace
from agentdeck.supervisor.monitor.reconcile import OrphanedWorkspaceError, ReconcileReport, reconcile
from agentdeck.supervisor.tracker import TrackerUnavailableError
from agentdeck.supervisor.vcs import GitClient, GitError

if TYPE_CHECKING:
    from agentdeck.supervisor.history import SessionHistory
    from agentdeck.supervisor.host.base import AgentHandle, AgentSpawner, SlotHost
    from agentdeck.supervisor.models.history import SessionSummary
    from agentdeck.supervisor.models.tracker import Issue, PullRequest
    from agentdeck.supervisor.registry import WorkspaceRegistry
    from agentdeck.supervisor.tracker import GitHubTracker

_UNSET: Any = object()
_SLUG_RE = re.compile(r"[^A-Za-z0-9._-]+")


class LaunchError(RuntimeError):
    """Raised when a workspace cannot be launched.  The registry is left unchanged."""


def slugify(value: str) -> str:
    return _SLUG_RE.sub("-", value).strip("-.")


def _initial_fingerprint(handle: AgentHandle) -> Any:
    try:
        return handle.activity_fingerprint()
    except Exception:
        return None


class WorkspaceManager:
    """Manages the full workspace lifecycle (launch -> poll -> kill)."""

    def __init__(
        self,
        registry: WorkspaceRegistry,
        spawner: AgentSpawner,
        slots: SlotHost,
        *,
        worktrees: WorktreeManager | None = None,
        git: GitClient | None = None,
        tracker: GitHubTracker | None = None,
        history: SessionHistory | None = None,
        repo_dir: Path | None = None,
    ) -> None:
        self._registry = registry
        self._spawner = spawner
        self._slots = slots
        self._git = git or GitClient()
        self._worktrees = worktrees or WorktreeManager(self._git)
        self._tracker = tracker
        self._history = history
        self.repo_dir = (repo_dir or Path.cwd()).resolve()

    @property
    def registry(self) -> WorkspaceRegistry:
        return self._registry

    async def _reconcile_locked(self) -> ReconcileReport:
        """Resync slot positions.  Caller must hold ``registry.lock``."""
        slots = await to_thread.run_sync(self._slots.list_slots)
        return reconcile(self._registry.all_ordered(), slots)

    # -- Launch ----------------------------------------------------------------

    async def launch(
        self,
        name: str,
        directory: Path | None = None,
        *,
        worktree: bool = False,
        base_branch: str | None = None,
        prompt: str | None = None,
        external_ref: str | None = None,
        args: Sequence[str] = (),
        session_id: str | None = None,
    ) -> Workspace:
        """Launch an agent workspace and register it.

        The name is disambiguated (``name-2``, ``name-3``, ...) rather than
        rejected.  On any failure ``LaunchError`` is raised and nothing is
        registered; a worktree created before the failure is left on disk for
        inspection.
        """
        directory = Path(directory or self.repo_dir).expanduser().resolve()

        async with self._registry.lock:
            ws_name = self._registry.unique_name(name)
            if ws_name != name:
                logger.info("Workspace name '{}' in use, launching as '{}'", name, ws_name)

            worktree_path: Path | None = None
            if worktree:
                repo_root = await to_thread.run_sync(self._git.repo_root, directory)
                if repo_root is None:
                    msg = f"Cannot create a worktree: {directory} is not inside a git repository"
                    raise LaunchError(msg)
                try:
                    worktree_path = await to_thread.run_sync(self._worktrees.create, repo_root, ws_name, base_branch)
                except WorktreeError as exc:
                    raise LaunchError(str(exc)) from exc
                workspace_dir = worktree_path
                branch: str | None = branch_for(ws_name)
            else:
                if not directory.is_dir():
                    msg = f"Directory does not exist: {directory}"
                    raise LaunchError(msg)
                workspace_dir = directory
                branch = await to_thread.run_sync(self._git.current_branch, directory)

            try:
                handle = await to_thread.run_sync(partial(self._spawner.spawn, workspace_dir, prompt, args=args))
            except SpawnError as exc:
                msg = f"Failed to start agent for '{ws_name}': {exc}"
                raise LaunchError(msg) from exc

            try:
                await to_thread.run_sync(self._slots.create_slot, ws_name, handle)
            except SlotError as exc:
                await self._terminate(ws_name, handle)
                msg = f"Failed to create a slot for '{ws_name}': {exc}"
                raise LaunchError(msg) from exc

            workspace = Workspace(
                name=ws_name,
                workspace_dir=workspace_dir,
                agent_handle=handle,
                branch_name=branch,
                is_worktree=worktree_path is not None,
                worktree_path=worktree_path,
                external_ref=external_ref,
                session_id=session_id,
                activity_fingerprint=_initial_fingerprint(handle),
            )
            self._registry.insert(workspace)
            await self._reconcile_locked()

        logger.info(
            "Workspace launched: {} (dir={}, branch={}, slot={})",
            workspace.name,
            workspace.workspace_dir,
            workspace.branch_name,
            workspace.slot_position,
        )
        return workspace

    async def launch_from_issue(self, number: int) -> Workspace:
        """Launch a worktree workspace seeded with an open issue."""
        tracker = self._require_tracker()
        issue = await to_thread.run_sync(tracker.get_issue, number)
        prompt = f"Work on GitHub issue #{issue.number}: {issue.title}"
        if issue.body:
            prompt += f"\n\n{issue.body}"
        return await self.launch(f"issue-{issue.number}", worktree=True, prompt=prompt, external_ref=f"#{issue.number}")

    async def launch_from_pr(self, number: int) -> Workspace:
        """Launch a worktree workspace on top of an open pull request's head branch."""
        tracker = self._require_tracker()
        pr = await to_thread.run_sync(tracker.get_pr, number)
        repo_root = await to_thread.run_sync(self._git.repo_root, self.repo_dir)
        if repo_root is None:
            msg = f"{self.repo_dir} is not inside a git repository"
            raise LaunchError(msg)
        try:
            await to_thread.run_sync(self._git.fetch, repo_root, pr.head_branch)
        except GitError as exc:
            msg = f"Could not fetch {pr.head_branch}: {exc}"
            raise LaunchError(msg) from exc

        prompt = f"Continue work on pull request #{pr.number}: {pr.title}"
        if pr.body:
            prompt += f"\n\n{pr.body}"
        return await self.launch(
            f"pr-{pr.number}",
            repo_root,
            worktree=True,
            base_branch=f"origin/{pr.head_branch}",
            prompt=prompt,
            external_ref=f"PR #{pr.number}",
        )

    async def resume(self, session_id: str) -> Workspace:
        """Relaunch a historical agent session in its original project directory."""
        if self._history is None:
            msg = "Session history is not configured"
            raise LookupError(msg)
        summary = await to_thread.run_sync(self._history.get, session_id)
        directory = Path(summary.project) if summary.project else self.repo_dir
        name = slugify(summary.branch or "") or f"resume-{session_id[:8]}"
        return await self.launch(name, directory, args=("--resume", session_id), session_id=session_id)

    # -- Kill ------------------------------------------------------------------

    async def kill(self, name: str, *, remove_worktree: bool = False) -> None:
        """Tear a workspace down and drop it from the registry.

        Slot, agent and worktree cleanup are best effort; a failure is logged
        and never keeps the workspace registered.  Raises
        ``WorkspaceNotFoundError`` for unknown names.
        """
        async with self._registry.lock:
            workspace = self._registry.get(name)
            await self._reconcile_locked()

            # Close the slot before terminating: some hosts drop the slot along
            # with the agent, and the index must still be ours when we close it.
            if workspace.has_slot:
                try:
                    await to_thread.run_sync(self._slots.close_slot, workspace.slot_position)
                except SlotError as exc:
                    logger.warning("Workspace {}: closing slot {} failed: {}", name, workspace.slot_position, exc)

            if workspace.agent_handle is not None:
                await self._terminate(name, workspace.agent_handle)
                workspace.agent_handle = None
            workspace.status = WorkspaceStatus.DONE

            if remove_worktree and workspace.worktree_path is not None:
                await to_thread.run_sync(self._worktrees.remove, workspace.worktree_path)

            self._registry.remove(name)
            await self._reconcile_locked()

        logger.info("Workspace killed: {} (worktree removed={})", name, remove_worktree and workspace.is_worktree)

    async def _terminate(self, name: str, handle: AgentHandle) -> None:
        try:
            await to_thread.run_sync(self._spawner.terminate, handle)
        except Exception as exc:
            logger.warning("Workspace {}: terminating agent failed: {}", name, exc)

    async def shutdown(self, *, kill_all: bool = False) -> None:
        if not kill_all:
            return
        for workspace in self._registry.all_ordered():
            await self.kill(workspace.name)

    # -- Slot targeting ----------------------------------------------------------

    async def switch_to(self, name: str) -> Workspace:
        """Select the workspace's slot.  Raises ``OrphanedWorkspaceError`` if it has none."""
        async with self._registry.lock:
            workspace = self._registry.get(name)
            await self._reconcile_locked()
            if not workspace.has_slot:
                raise OrphanedWorkspaceError(name)
            await to_thread.run_sync(self._slots.select_slot, workspace.slot_position)
        return workspace

    async def reconcile(self) -> ReconcileReport:
        async with self._registry.lock:
            return await self._reconcile_locked()

    # -- Update ----------------------------------------------------------------

    async def update_workspace(
        self,
        name: str,
        *,
        branch_name: str | None = _UNSET,
        external_ref: str | None = _UNSET,
        worktree_path: Path | None = _UNSET,
    ) -> Workspace:
        """Set post-creation attributes.  Only arguments passed explicitly are applied."""
        async with self._registry.lock:
            workspace = self._registry.get(name)
            if branch_name is not _UNSET:
                workspace.branch_name = branch_name
            if external_ref is not _UNSET:
                workspace.external_ref = external_ref
            if worktree_path is not _UNSET:
                if worktree_path is None:
                    workspace.detach_worktree()
                else:
                    workspace.attach_worktree(Path(worktree_path))
        return workspace

    # -- Pull requests -----------------------------------------------------------

    async def create_pr(self, name: str, *, title: str | None = None, body: str | None = None) -> str:
        """Push the workspace's branch and open a pull request.  Returns the PR URL.

        Preconditions (tracker available, workspace on a branch) are checked
        before anything is pushed.
        """
        tracker = self._require_tracker()
        async with self._registry.lock:
            workspace = self._registry.get(name)
            branch = workspace.branch_name
            directory = workspace.workspace_dir
            ref = workspace.external_ref
        if not branch:
            msg = f"Workspace '{name}' is not on a branch"
            raise ValueError(msg)

        title = title or f"{name}: changes from agent workspace"
        body = body or (f"Related: {ref}" if ref else "")
        await to_thread.run_sync(self._git.push_branch, directory, branch)
        url = await to_thread.run_sync(tracker.create_pr, title, body, branch)

        async with self._registry.lock:
            # The workspace may have been killed while we were pushing.
            if self._registry.find_by_name(name) is workspace:
                workspace.external_ref = url or workspace.external_ref
        return url

    # -- Read-only sources -------------------------------------------------------

    def _require_tracker(self) -> GitHubTracker:
        if self._tracker is None:
            msg = "No issue tracker configured"
            raise TrackerUnavailableError(msg)
        self._tracker.ensure_available()
        return self._tracker

    async def list_issues(self) -> list[Issue]:
        tracker = self._require_tracker()
        return await to_thread.run_sync(tracker.list_open_issues)

    async def list_prs(self) -> list[PullRequest]:
        tracker = self._require_tracker()
        return await to_thread.run_sync(tracker.list_open_prs)

    async def list_history(self, project: str | None = None, *, limit: int = 50) -> list[SessionSummary]:
        if self._history is None:
            return []
        return await to_thread.run_sync(partial(self._history.list_sessions, project, limit=limit))
