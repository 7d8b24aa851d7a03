"""Supervisor configuration loaded from AGENTDECK_* environment variables."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DeckSettings(BaseSettings):
    """agentdeck supervisor settings.

    All fields are read from environment variables with the ``AGENTDECK_``
    prefix.  For example, ``AGENTDECK_IDLE_THRESHOLD=10`` maps to
    ``idle_threshold``.
    """

    model_config = SettingsConfigDict(
        env_prefix="AGENTDECK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"
    log_file: str | None = None

    # -- Server ----------------------------------------------------------------
    host: str = "127.0.0.1"
    port: int = 8765

    # -- Monitoring ------------------------------------------------------------
    poll_interval: float = Field(default=3.0, gt=0)
    """Seconds between poll ticks."""

    idle_threshold: float = Field(default=5.0, gt=0)
    """Seconds without new output before a live agent is shown as waiting.

    Heuristic: a quietly computing agent also shows as waiting once this
    passes.  Quiet for exactly this long still counts as running.
    """

    label_slots: bool = True
    """Prefix slot labels with a status glyph after every tick."""

    kill_on_exit: bool = False
    """Kill every workspace when the supervisor shuts down."""

    # -- Host ------------------------------------------------------------------
    tmux_session: str = "agentdeck"
    dashboard_label: str = "Dashboard"
    agent_command: str = "claude"

    # -- Repository ------------------------------------------------------------
    repo_dir: Path = Field(default_factory=Path.cwd)
    """Repository the supervisor launches into by default."""

    worktree_root: str = ".agents-worktrees"
    """Worktree directory, relative to the repository root."""

    repo: str | None = None
    """``owner/name`` for the tracker; inferred by ``gh`` from ``repo_dir`` when unset."""

    # -- History ---------------------------------------------------------------
    history_dir: Path = Path("~/.claude/projects")


@lru_cache(maxsize=1)
def get_settings() -> DeckSettings:
    """Return a cached settings instance.

    Call ``get_settings.cache_clear()`` in tests to force a re-read after
    overriding env vars.
    """
    return DeckSettings()
