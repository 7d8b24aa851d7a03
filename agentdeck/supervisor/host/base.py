"""Host collaborator interfaces.

The supervisor never starts processes or draws UI itself.  It consumes two
collaborators, usually implemented by one object (see ``TmuxHost``):

- an **agent spawner** that starts an interactive agent in a directory and
  hands back an opaque ``AgentHandle``;
- a **slot host** exposing the host UI's ordered list of slots (tabs /
  windows) that the user can reorder, rename or close at any time.

All methods are synchronous and may block; the supervisor calls them via
``anyio.to_thread``.
"""

from __future__ import annotations

from collections.abc import Hashable, Sequence
from pathlib import Path
from typing import NamedTuple, Protocol, runtime_checkable


class Slot(NamedTuple):
    """One entry of the host's ordered slot list."""

    index: int
    label: str


class SpawnError(RuntimeError):
    """Raised when the host fails to start an agent."""


class SlotError(RuntimeError):
    """Raised when a slot primitive fails on the host."""


@runtime_checkable
class AgentHandle(Protocol):
    """Opaque handle to a spawned agent process."""

    def is_live(self) -> bool:
        """Whether the process is still running."""
        ...

    def exit_code(self) -> int | None:
        """Exit code once the process has exited, ``None`` while live or unknown."""
        ...

    def activity_fingerprint(self) -> Hashable:
        """Comparable token that changes whenever the agent produces output."""
        ...


@runtime_checkable
class AgentSpawner(Protocol):
    def spawn(self, directory: Path, prompt: str | None = None, *, args: Sequence[str] = ()) -> AgentHandle:
        """Start an agent in *directory*.  Raises ``SpawnError`` on failure."""
        ...

    def terminate(self, handle: AgentHandle) -> None:
        """Stop the agent.  No-op if it already exited."""
        ...

    def refresh(self) -> None:
        """Refresh cached liveness/activity for all handles (once per poll tick)."""
        ...


@runtime_checkable
class SlotHost(Protocol):
    def list_slots(self) -> list[Slot]:
        """Current slots in display order."""
        ...

    def create_slot(self, label: str, handle: AgentHandle | None = None) -> int:
        """Create (or adopt the slot already holding *handle*) and return its index."""
        ...

    def rename_slot(self, index: int, label: str) -> None: ...

    def select_slot(self, index: int) -> None: ...

    def close_slot(self, index: int) -> None: ...
