"""Tests for git worktree management."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest
from loguru import logger

from agentdeck.supervisor.managers.worktrees import (
    WorktreeError,
    WorktreeExistsError,
    WorktreeManager,
    branch_for,
)
from agentdeck.supervisor.vcs import GitClient, GitError
from tests.supervisor.fakes import FakeGit


def test_layout() -> None:
    manager = WorktreeManager(FakeGit(None))
    assert manager.path_for(Path("/r"), "feature-x") == Path("/r/.agents-worktrees/feature-x")
    assert branch_for("feature-x") == "agents/feature-x"


def test_custom_root() -> None:
    manager = WorktreeManager(FakeGit(None), worktree_root=".wt")
    assert manager.path_for(Path("/r"), "x") == Path("/r/.wt/x")


def test_create_and_exclude(repo_dir: Path, git: FakeGit) -> None:
    manager = WorktreeManager(git)
    path = manager.create(repo_dir, "feature-x", "main")

    assert path == repo_dir / ".agents-worktrees" / "feature-x"
    assert git.worktrees == [(path, "agents/feature-x", "main")]
    exclude = repo_dir / ".git" / "info" / "exclude"
    assert exclude.read_text().splitlines() == ["/.agents-worktrees/"]

    # Idempotent
    manager.create(repo_dir, "feature-y")
    assert exclude.read_text().splitlines() == ["/.agents-worktrees/"]


def test_existing_path_fails_before_mutation(repo_dir: Path, git: FakeGit) -> None:
    manager = WorktreeManager(git)
    manager.path_for(repo_dir, "feature-x").mkdir(parents=True)

    with pytest.raises(WorktreeExistsError):
        manager.create(repo_dir, "feature-x")

    assert git.worktrees == []
    assert not (repo_dir / ".git" / "info" / "exclude").exists()


def test_git_failure_is_wrapped(repo_dir: Path, git: FakeGit) -> None:
    git.fail_worktree = True
    with pytest.raises(WorktreeError, match="invalid reference"):
        WorktreeManager(git).create(repo_dir, "feature-x", "no-such-branch")


def test_remove_falls_back_to_rmtree(repo_dir: Path, git: FakeGit) -> None:
    manager = WorktreeManager(git)
    path = manager.create(repo_dir, "feature-x")
    (path / "scratch.txt").write_text("x")
    git.fail_remove = True

    assert manager.remove(path) is True
    assert not path.exists()
    assert git.pruned == [path.parent]


# ---------------------------------------------------------------------------
# Real git
# ---------------------------------------------------------------------------


def _git(cwd: Path, *args: str) -> str:
    return subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True, text=True).stdout


@pytest.fixture
def real_repo(tmp_path: Path) -> Path:
    repo = tmp_path / "app"
    repo.mkdir()
    _git(repo, "init", "-q")
    _git(repo, "config", "user.email", "dev@example.com")
    _git(repo, "config", "user.name", "Dev")
    _git(repo, "config", "commit.gpgsign", "false")
    (repo / "README.md").write_text("hello\n")
    _git(repo, "add", "README.md")
    _git(repo, "commit", "-q", "-m", "init")
    return GitClient().repo_root(repo)


@pytest.mark.git
def test_real_worktree_roundtrip(real_repo: Path) -> None:
    git = GitClient()
    manager = WorktreeManager(git)

    path = manager.create(real_repo, "feature-x")

    assert (path / "README.md").read_text() == "hello\n"
    assert git.current_branch(path) == "agents/feature-x"
    assert git.branch_exists(real_repo, "agents/feature-x")
    # The worktree root is excluded, so the main checkout stays clean.
    assert _git(real_repo, "status", "--porcelain") == ""

    assert manager.remove(path) is True
    assert not path.exists()


class _RemoveFailsGit(GitClient):
    def remove_worktree(self, path: Path) -> None:
        raise GitError("fatal: validation failed")


@pytest.mark.git
def test_real_fallback_removal_prunes_registration(real_repo: Path) -> None:
    manager = WorktreeManager(_RemoveFailsGit())
    path = manager.create(real_repo, "feature-x")
    assert str(path) in _git(real_repo, "worktree", "list", "--porcelain")

    assert manager.remove(path) is True

    assert not path.exists()
    assert str(path) not in _git(real_repo, "worktree", "list", "--porcelain")


@pytest.mark.git
def test_real_existing_branch_ignores_base(real_repo: Path) -> None:
    _git(real_repo, "branch", "agents/feature-x")
    (real_repo / "README.md").write_text("changed\n")
    _git(real_repo, "commit", "-q", "-am", "change")
    base = _git(real_repo, "symbolic-ref", "--short", "HEAD").strip()

    messages: list[str] = []
    handler_id = logger.add(messages.append, level="WARNING", format="{message}")
    try:
        path = WorktreeManager(GitClient()).create(real_repo, "feature-x", base)
    finally:
        logger.remove(handler_id)

    # The existing branch is checked out untouched, not reset onto the base.
    assert (path / "README.md").read_text() == "hello\n"
    assert any("agents/feature-x already exists" in m and base in m for m in messages)
