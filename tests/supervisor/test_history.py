"""Tests for the session history reader."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from agentdeck.supervisor.history import SessionHistory


def _write_index(root: Path, project_dir: str, payload: object) -> None:
    directory = root / project_dir
    directory.mkdir()
    (directory / "sessions-index.json").write_text(json.dumps(payload))


@pytest.fixture
def history(history_dir: Path) -> SessionHistory:
    _write_index(
        history_dir,
        "-home-me-app",
        {
            "version": 1,
            "entries": [
                {
                    "sessionId": "aaa",
                    "projectPath": "/home/me/app",
                    "gitBranch": "main",
                    "firstPrompt": "add tests",
                    "modified": "2026-01-01T09:00:00Z",
                    "messageCount": 12,
                },
                {
                    "sessionId": "bbb",
                    "projectPath": "/home/me/app",
                    "modified": "2026-01-03T09:00:00Z",
                },
            ],
        },
    )
    _write_index(
        history_dir,
        "-home-me-lib",
        [{"sessionId": "ccc", "projectPath": "/home/me/lib", "modified": "2026-01-02T09:00:00Z"}],
    )
    broken = history_dir / "-broken"
    broken.mkdir()
    (broken / "sessions-index.json").write_text("{not json")
    return SessionHistory(history_dir)


def test_list_newest_first(history: SessionHistory) -> None:
    sessions = history.list_sessions()
    assert [s.session_id for s in sessions] == ["bbb", "ccc", "aaa"]


def test_aliases_parsed(history: SessionHistory) -> None:
    aaa = history.get("aaa")
    assert aaa.project == "/home/me/app"
    assert aaa.branch == "main"
    assert aaa.first_prompt == "add tests"
    assert aaa.modified_at.year == 2026


def test_filter_by_project_and_limit(history: SessionHistory) -> None:
    assert [s.session_id for s in history.list_sessions("/home/me/app")] == ["bbb", "aaa"]
    assert [s.session_id for s in history.list_sessions(limit=1)] == ["bbb"]


def test_get_unknown(history: SessionHistory) -> None:
    with pytest.raises(LookupError):
        history.get("zzz")


def test_missing_directory(tmp_path: Path) -> None:
    assert SessionHistory(tmp_path / "nowhere").list_sessions() == []


def test_malformed_entries_skipped(history_dir: Path) -> None:
    _write_index(history_dir, "-x", {"entries": [{"projectPath": "/x"}, {"sessionId": "ok"}]})
    assert [s.session_id for s in SessionHistory(history_dir).list_sessions()] == ["ok"]
