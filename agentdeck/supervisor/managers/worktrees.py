"""Git worktree lifecycle for isolated agent workspaces.

Layout::

    {repo_root}/{worktree_root}/{workspace_name}/   on branch agents/{workspace_name}

The branch is derived from the workspace name alone so branch and workspace
identity stay in lockstep.  ``worktree_root`` is added to the repository's
``info/exclude`` so checkouts never show up as untracked files.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from loguru import logger

from agentdeck.supervisor.vcs import GitClient, GitError

DEFAULT_WORKTREE_ROOT = ".agents-worktrees"
BRANCH_PREFIX = "agents/"


class WorktreeError(RuntimeError):
    """Raised when a worktree cannot be created."""


class WorktreeExistsError(WorktreeError):
    """Raised when the target worktree path already exists."""


def branch_for(workspace_name: str) -> str:
    return f"{BRANCH_PREFIX}{workspace_name}"


class WorktreeManager:
    def __init__(self, git: GitClient | None = None, *, worktree_root: str = DEFAULT_WORKTREE_ROOT) -> None:
        self._git = git or GitClient()
        self.worktree_root = worktree_root

    def path_for(self, repo_root: Path, workspace_name: str) -> Path:
        return repo_root / self.worktree_root / workspace_name

    def create(self, repo_root: Path, workspace_name: str, base_branch: str | None = None) -> Path:
        """Create the worktree for *workspace_name* and return its path.

        Raises ``WorktreeExistsError`` without touching anything if the path
        is taken, and ``WorktreeError`` if git fails.
        """
        path = self.path_for(repo_root, workspace_name)
        if path.exists():
            msg = f"Worktree path already exists: {path}"
            raise WorktreeExistsError(msg)

        branch = branch_for(workspace_name)
        self._ensure_excluded(repo_root)
        try:
            self._git.create_worktree(repo_root, path, branch, base_branch)
        except GitError as exc:
            raise WorktreeError(str(exc)) from exc

        logger.info("Worktree created: {} (branch={}, base={})", path, branch, base_branch or "HEAD")
        return path

    def remove(self, path: Path) -> bool:
        """Remove a worktree.  Best effort: failures are logged, never raised.

        Returns ``True`` when the worktree is gone afterwards.
        """
        try:
            self._git.remove_worktree(path)
        except GitError as exc:
            logger.warning("Worktree removal via git failed for {}: {}", path, exc)
            if path.exists():
                try:
                    shutil.rmtree(path)
                except OSError as rm_exc:
                    logger.warning("Could not delete worktree directory {}: {}", path, rm_exc)
                    return False
            # The directory is gone but git still lists it under .git/worktrees.
            try:
                self._git.prune_worktrees(path.parent)
            except GitError as prune_exc:
                logger.warning("git worktree prune failed after removing {}: {}", path, prune_exc)
        logger.info("Worktree removed: {}", path)
        return True

    def _ensure_excluded(self, repo_root: Path) -> None:
        """Add the worktree root to ``info/exclude`` (idempotent, best effort)."""
        pattern = f"/{self.worktree_root.strip('/')}/"
        try:
            exclude = self._git.git_dir(repo_root) / "info" / "exclude"
            existing = exclude.read_text(encoding="utf-8") if exclude.exists() else ""
            if pattern in existing.splitlines():
                return
            exclude.parent.mkdir(parents=True, exist_ok=True)
            prefix = "" if not existing or existing.endswith("\n") else "\n"
            with exclude.open("a", encoding="utf-8") as f:
                f.write(f"{prefix}{pattern}\n")
        except (GitError, OSError) as exc:
            logger.debug("Could not update info/exclude for {}: {}", repo_root, exc)
