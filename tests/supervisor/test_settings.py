from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from agentdeck.supervisor.settings import DeckSettings, get_settings


def test_defaults(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    settings = DeckSettings()
    assert settings.poll_interval == 3.0
    assert settings.idle_threshold == 5.0
    assert settings.worktree_root == ".agents-worktrees"
    assert settings.tmux_session == "agentdeck"
    assert settings.repo_dir == tmp_path.resolve()


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AGENTDECK_IDLE_THRESHOLD", "10")
    monkeypatch.setenv("AGENTDECK_AGENT_COMMAND", "claude --model opus")
    monkeypatch.setenv("AGENTDECK_LABEL_SLOTS", "false")

    settings = get_settings()

    assert settings.idle_threshold == 10.0
    assert settings.agent_command == "claude --model opus"
    assert settings.label_slots is False
    assert get_settings() is settings


def test_rejects_non_positive_interval(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AGENTDECK_POLL_INTERVAL", "0")
    with pytest.raises(ValidationError):
        DeckSettings()
