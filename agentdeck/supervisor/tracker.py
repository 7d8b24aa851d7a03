"""GitHub tracker collaborator, backed by the ``gh`` CLI.

Lists open issues / pull requests and opens pull requests.  A missing
``gh`` binary or a failed call is a precondition failure: callers check
before mutating anything and abandon the operation without retrying.
"""

from __future__ import annotations

import json
import shutil
import subprocess
from pathlib import Path

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from agentdeck.supervisor.models.tracker import Issue, PullRequest

GH_TIMEOUT = 30
DEFAULT_LIMIT = 50

_issues = TypeAdapter(list[Issue])
_prs = TypeAdapter(list[PullRequest])


class TrackerError(RuntimeError):
    """Raised when a tracker call fails."""


class TrackerUnavailableError(TrackerError):
    """Raised when the ``gh`` CLI is not installed."""


class GitHubTracker:
    """Issue / PR access for one repository.

    ``repo`` is ``owner/name``; when ``None``, ``gh`` infers it from ``cwd``.
    """

    def __init__(self, repo: str | None = None, *, cwd: Path | None = None, executable: str = "gh") -> None:
        self.repo = repo
        self.cwd = cwd
        self.executable = executable

    @property
    def available(self) -> bool:
        return shutil.which(self.executable) is not None

    def ensure_available(self) -> None:
        if not self.available:
            msg = f"'{self.executable}' CLI not found on PATH; install GitHub CLI and run 'gh auth login'."
            raise TrackerUnavailableError(msg)

    def _run(self, args: list[str]) -> str:
        self.ensure_available()
        cmd = [self.executable, *args]
        if self.repo:
            cmd += ["--repo", self.repo]
        logger.debug("gh: {}", " ".join(args))
        try:
            proc = subprocess.run(cmd, cwd=self.cwd, capture_output=True, text=True, timeout=GH_TIMEOUT, check=False)
        except (OSError, subprocess.TimeoutExpired) as exc:
            msg = f"gh {args[0]} failed: {exc}"
            raise TrackerError(msg) from exc
        if proc.returncode != 0:
            msg = f"gh {' '.join(args[:2])} failed: {proc.stderr.strip()}"
            raise TrackerError(msg)
        return proc.stdout

    def list_open_issues(self, limit: int = DEFAULT_LIMIT) -> list[Issue]:
        out = self._run(["issue", "list", "--state", "open", "--json", "number,title,body", "--limit", str(limit)])
        try:
            return _issues.validate_python(json.loads(out or "[]"))
        except (json.JSONDecodeError, ValidationError) as exc:
            msg = f"Unexpected output from gh issue list: {exc}"
            raise TrackerError(msg) from None

    def list_open_prs(self, limit: int = DEFAULT_LIMIT) -> list[PullRequest]:
        out = self._run(
            ["pr", "list", "--state", "open", "--json", "number,title,headRefName,body", "--limit", str(limit)]
        )
        try:
            return _prs.validate_python(json.loads(out or "[]"))
        except (json.JSONDecodeError, ValidationError) as exc:
            msg = f"Unexpected output from gh pr list: {exc}"
            raise TrackerError(msg) from None

    def get_issue(self, number: int) -> Issue:
        for issue in self.list_open_issues(limit=200):
            if issue.number == number:
                return issue
        msg = f"Open issue #{number} not found"
        raise LookupError(msg)

    def get_pr(self, number: int) -> PullRequest:
        for pr in self.list_open_prs(limit=200):
            if pr.number == number:
                return pr
        msg = f"Open pull request #{number} not found"
        raise LookupError(msg)

    def create_pr(self, title: str, body: str, head_branch: str) -> str:
        """Open a pull request and return its URL."""
        out = self._run(["pr", "create", "--title", title, "--body", body, "--head", head_branch])
        url = out.strip().splitlines()[-1] if out.strip() else ""
        logger.info("Pull request created for {}: {}", head_branch, url)
        return url
