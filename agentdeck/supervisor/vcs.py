"""Git collaborator.

Thin synchronous wrapper over the ``git`` CLI.  Every call may block; the
supervisor invokes these through ``anyio.to_thread``.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

from loguru import logger

GIT_TIMEOUT = 60


class GitError(RuntimeError):
    """Raised when a git command fails."""


class GitClient:
    def __init__(self, executable: str = "git") -> None:
        self.executable = executable

    def _run(
        self, args: list[str], *, cwd: Path | str | None = None, check: bool = True
    ) -> subprocess.CompletedProcess[str]:
        cmd = [self.executable, *args]
        logger.debug("git: {} (cwd={})", " ".join(args), cwd)
        try:
            proc = subprocess.run(cmd, cwd=cwd, capture_output=True, text=True, timeout=GIT_TIMEOUT, check=False)
        except (OSError, subprocess.TimeoutExpired) as exc:
            msg = f"git {args[0]} failed: {exc}"
            raise GitError(msg) from exc
        if check and proc.returncode != 0:
            msg = f"git {' '.join(args)} failed: {proc.stderr.strip() or proc.stdout.strip()}"
            raise GitError(msg)
        return proc

    # -- Query -----------------------------------------------------------------

    def repo_root(self, directory: Path | str) -> Path | None:
        """Top-level directory of the repository containing *directory*, if any."""
        try:
            proc = self._run(["rev-parse", "--show-toplevel"], cwd=directory, check=False)
        except GitError:
            return None
        if proc.returncode != 0:
            return None
        return Path(proc.stdout.strip())

    def current_branch(self, directory: Path | str) -> str | None:
        """Checked-out branch name, ``None`` when detached or outside a repo."""
        try:
            proc = self._run(["symbolic-ref", "--quiet", "--short", "HEAD"], cwd=directory, check=False)
        except GitError:
            return None
        branch = proc.stdout.strip()
        return branch if proc.returncode == 0 and branch else None

    def branch_exists(self, repo_root: Path, branch: str) -> bool:
        proc = self._run(["rev-parse", "--verify", "--quiet", f"refs/heads/{branch}"], cwd=repo_root, check=False)
        return proc.returncode == 0

    def git_dir(self, repo_root: Path) -> Path:
        """Common git directory (shared by all worktrees)."""
        proc = self._run(["rev-parse", "--git-common-dir"], cwd=repo_root)
        path = Path(proc.stdout.strip())
        return path if path.is_absolute() else (repo_root / path).resolve()

    # -- Mutation --------------------------------------------------------------

    def create_worktree(self, repo_root: Path, path: Path, branch: str, base_branch: str | None = None) -> None:
        """Add a worktree at *path* on *branch*, creating the branch from *base_branch* if needed.

        An existing *branch* is checked out as is; *base_branch* then only
        triggers a warning.
        """
        if self.branch_exists(repo_root, branch):
            if base_branch:
                logger.warning("Branch {} already exists, checking it out as is (base {} ignored)", branch, base_branch)
            args = ["worktree", "add", str(path), branch]
        else:
            args = ["worktree", "add", "-b", branch, str(path)]
            if base_branch:
                args.append(base_branch)
        self._run(args, cwd=repo_root)

    def remove_worktree(self, path: Path) -> None:
        self._run(["worktree", "remove", "--force", str(path)], cwd=path.parent)

    def prune_worktrees(self, directory: Path) -> None:
        """Drop registrations of worktrees whose directories are gone."""
        self._run(["worktree", "prune"], cwd=directory)

    def fetch(self, repo_root: Path, ref: str, remote: str = "origin") -> None:
        self._run(["fetch", remote, ref], cwd=repo_root)

    def push_branch(self, directory: Path, branch: str, remote: str = "origin") -> None:
        self._run(["push", "--set-upstream", remote, branch], cwd=directory)
