"""Read-only access to the agent's historical session log.

Layout (one index per project)::

    {history_dir}/{encoded-project}/sessions-index.json

Each index is either a list of entries or an object with an ``entries``
list.  Unreadable or malformed indexes are skipped with a warning.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from agentdeck.supervisor.models.history import SessionSummary

INDEX_FILENAME = "sessions-index.json"


class SessionHistory:
    def __init__(self, history_dir: str | Path) -> None:
        self._root = Path(history_dir).expanduser()

    def _read_index(self, path: Path) -> list[SessionSummary]:
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("History: skipping unreadable index {}: {}", path, exc)
            return []

        entries = raw.get("entries", []) if isinstance(raw, dict) else raw
        if not isinstance(entries, list):
            logger.warning("History: unexpected index layout in {}", path)
            return []

        summaries: list[SessionSummary] = []
        for entry in entries:
            try:
                summaries.append(SessionSummary.model_validate(entry))
            except ValidationError as exc:
                logger.debug("History: skipping malformed entry in {}: {}", path, exc)
        return summaries

    def list_sessions(self, project: str | None = None, *, limit: int = 50) -> list[SessionSummary]:
        """Return session summaries newest first, optionally for one project path."""
        if not self._root.is_dir():
            return []

        sessions: list[SessionSummary] = []
        for index in sorted(self._root.glob(f"*/{INDEX_FILENAME}")):
            sessions.extend(self._read_index(index))

        if project is not None:
            wanted = str(Path(project).expanduser())
            sessions = [s for s in sessions if s.project == wanted]

        oldest = datetime.min.replace(tzinfo=UTC)
        sessions.sort(key=lambda s: _aware(s.modified_at) or oldest, reverse=True)
        return sessions[:limit]

    def get(self, session_id: str) -> SessionSummary:
        """Find one session by id.  Raises ``LookupError`` if absent."""
        for s in self.list_sessions(limit=10_000):
            if s.session_id == session_id:
                return s
        msg = f"Session '{session_id}' not found in history"
        raise LookupError(msg)


def _aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
