"""tmux host: agents run in windows of one tmux session, windows are the slots.

Each agent gets its own window with ``remain-on-exit`` set, so a finished
agent's pane stays around as "dead" and its exit status stays readable via
``#{pane_dead_status}``.  Liveness and activity for all agents come from one
``list-panes`` call per poll tick (``refresh``); handles only read that
snapshot, which keeps the tick cheap.

``refresh`` runs in a worker thread while ``spawn`` may run concurrently in
another.  A pane spawned after a refresh started listing is missing from that
refresh's output, so its seeded entry is carried over instead of being
dropped; only a snapshot that began after the spawn can declare it gone.

The activity fingerprint is ``(#{window_activity}, #{history_size})``: the
window's last-output timestamp plus the scrollback length.
"""

from __future__ import annotations

import shlex
import shutil
import subprocess
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from agentdeck.supervisor.host.base import AgentHandle, Slot, SlotError, SpawnError

TMUX_TIMEOUT = 10

_PANE_FORMAT = "#{pane_id}\t#{pane_dead}\t#{pane_dead_status}\t#{window_activity}\t#{history_size}"
_WINDOW_FORMAT = "#{window_index}\t#{window_name}"


class TmuxError(RuntimeError):
    """Raised when a tmux command fails."""


@dataclass(frozen=True)
class PaneState:
    dead: bool
    exit_status: int | None
    activity: tuple[str, str]


class TmuxAgentHandle:
    """Handle to an agent running in a tmux pane, read from the host snapshot."""

    def __init__(self, pane_id: str, host: TmuxHost) -> None:
        self.pane_id = pane_id
        self._host = host

    def _state(self) -> PaneState | None:
        return self._host.pane_state(self.pane_id)

    def is_live(self) -> bool:
        state = self._state()
        return state is not None and not state.dead

    def exit_code(self) -> int | None:
        state = self._state()
        if state is None or not state.dead:
            return None
        return state.exit_status

    def activity_fingerprint(self) -> tuple[str, str]:
        state = self._state()
        if state is None:
            msg = f"pane {self.pane_id} is gone"
            raise TmuxError(msg)
        return state.activity

    def __repr__(self) -> str:
        return f"TmuxAgentHandle({self.pane_id!r})"


class TmuxHost:
    """Agent spawner and slot host backed by one tmux session."""

    def __init__(
        self,
        session: str = "agentdeck",
        *,
        agent_command: str = "claude",
        dashboard_label: str = "Dashboard",
        executable: str = "tmux",
    ) -> None:
        self.session = session
        self.agent_command = agent_command
        self.dashboard_label = dashboard_label
        self.executable = executable
        self._panes: dict[str, PaneState] = {}
        # pane id -> generation at which spawn seeded it, until a snapshot confirms it
        self._seeded: dict[str, int] = {}
        self._generation = 0
        self._lock = threading.Lock()

    # -- Plumbing --------------------------------------------------------------

    def _tmux(self, *args: str) -> str:
        cmd = [self.executable, *args]
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, timeout=TMUX_TIMEOUT, check=False)
        except (OSError, subprocess.TimeoutExpired) as exc:
            msg = f"tmux {args[0]} failed: {exc}"
            raise TmuxError(msg) from exc
        if proc.returncode != 0:
            msg = f"tmux {args[0]} failed: {proc.stderr.strip()}"
            raise TmuxError(msg)
        return proc.stdout

    def _window(self, index: int) -> str:
        return f"={self.session}:{index}"

    @property
    def available(self) -> bool:
        return shutil.which(self.executable) is not None

    def ensure_session(self) -> None:
        """Create the tmux session (with its dashboard window) if missing."""
        try:
            self._tmux("has-session", "-t", f"={self.session}")
        except TmuxError:
            self._tmux("new-session", "-d", "-s", self.session, "-n", self.dashboard_label)
            logger.info("tmux: created session {}", self.session)

    # -- AgentSpawner ----------------------------------------------------------

    def spawn(self, directory: Path, prompt: str | None = None, *, args: Sequence[str] = ()) -> TmuxAgentHandle:
        command = [*shlex.split(self.agent_command), *args]
        if prompt:
            command.append(prompt)
        try:
            self.ensure_session()
            pane_id = self._tmux(
                "new-window",
                "-d",
                "-P",
                "-F",
                "#{pane_id}",
                "-t",
                f"={self.session}:",
                "-c",
                str(directory),
                shlex.join(command),
            ).strip()
            self._tmux("set-option", "-w", "-t", pane_id, "remain-on-exit", "on")
        except TmuxError as exc:
            raise SpawnError(str(exc)) from exc

        # Seed the snapshot so the new agent reads as live before the next refresh.
        with self._lock:
            self._generation += 1
            self._seeded[pane_id] = self._generation
            self._panes = {**self._panes, pane_id: PaneState(dead=False, exit_status=None, activity=("", ""))}
        logger.info("tmux: spawned agent in pane {} (dir={})", pane_id, directory)
        return TmuxAgentHandle(pane_id, self)

    def terminate(self, handle: AgentHandle) -> None:
        if not isinstance(handle, TmuxAgentHandle):
            return
        try:
            self._tmux("kill-pane", "-t", handle.pane_id)
        except TmuxError as exc:
            logger.debug("tmux: kill-pane {} failed (already gone?): {}", handle.pane_id, exc)
        with self._lock:
            panes = dict(self._panes)
            panes.pop(handle.pane_id, None)
            self._seeded.pop(handle.pane_id, None)
            self._panes = panes

    def refresh(self) -> None:
        with self._lock:
            started = self._generation

        panes: dict[str, PaneState] = {}
        try:
            out = self._tmux("list-panes", "-s", "-t", f"={self.session}", "-F", _PANE_FORMAT)
        except TmuxError as exc:
            logger.debug("tmux: list-panes failed, no live agents: {}", exc)
            self._install(panes, started)
            return

        for line in out.splitlines():
            parts = line.split("\t")
            if len(parts) != 5:
                continue
            pane_id, dead, status, activity, history = parts
            panes[pane_id] = PaneState(
                dead=dead == "1",
                exit_status=int(status) if status.lstrip("-").isdigit() else None,
                activity=(activity, history),
            )
        self._install(panes, started)

    def _install(self, panes: dict[str, PaneState], started: int) -> None:
        """Swap in a snapshot taken at generation ``started``, keeping newer spawns."""
        with self._lock:
            for pane_id, generation in list(self._seeded.items()):
                if pane_id in panes:
                    del self._seeded[pane_id]
                elif generation > started and pane_id in self._panes:
                    panes[pane_id] = self._panes[pane_id]
                else:
                    del self._seeded[pane_id]
            self._panes = panes

    def pane_state(self, pane_id: str) -> PaneState | None:
        return self._panes.get(pane_id)

    # -- SlotHost --------------------------------------------------------------

    def list_slots(self) -> list[Slot]:
        try:
            out = self._tmux("list-windows", "-t", f"={self.session}", "-F", _WINDOW_FORMAT)
        except TmuxError as exc:
            logger.debug("tmux: list-windows failed: {}", exc)
            return []
        slots = []
        for line in out.splitlines():
            index, _, label = line.partition("\t")
            if index.isdigit():
                slots.append(Slot(int(index), label))
        return slots

    def create_slot(self, label: str, handle: AgentHandle | None = None) -> int:
        try:
            if isinstance(handle, TmuxAgentHandle):
                # The agent already lives in its own window: adopt it as the slot.
                self._tmux("rename-window", "-t", handle.pane_id, label)
                out = self._tmux("display-message", "-p", "-t", handle.pane_id, "#{window_index}")
            else:
                self.ensure_session()
                out = self._tmux(
                    "new-window", "-d", "-P", "-F", "#{window_index}", "-t", f"={self.session}:", "-n", label
                )
        except TmuxError as exc:
            raise SlotError(str(exc)) from exc
        return int(out.strip())

    def rename_slot(self, index: int, label: str) -> None:
        try:
            self._tmux("rename-window", "-t", self._window(index), label)
        except TmuxError as exc:
            raise SlotError(str(exc)) from exc

    def select_slot(self, index: int) -> None:
        try:
            self._tmux("select-window", "-t", self._window(index))
        except TmuxError as exc:
            raise SlotError(str(exc)) from exc

    def close_slot(self, index: int) -> None:
        try:
            self._tmux("kill-window", "-t", self._window(index))
        except TmuxError as exc:
            raise SlotError(str(exc)) from exc
