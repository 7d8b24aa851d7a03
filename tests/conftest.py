"""Shared test fixtures.

The supervisor's collaborators (tmux, git, gh) are replaced with in-memory
fakes from ``tests.supervisor.fakes``; tests needing a real ``git`` binary
are marked with ``@pytest.mark.git`` and skipped when it is missing.
"""

from __future__ import annotations

import shutil
from collections.abc import Iterator

import pytest

from agentdeck.supervisor.settings import get_settings


@pytest.fixture(autouse=True)
def _fresh_settings() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if shutil.which("git") is not None:
        return
    skip_git = pytest.mark.skip(reason="git binary not available")
    for item in items:
        if item.get_closest_marker("git") is not None:
            item.add_marker(skip_git)
