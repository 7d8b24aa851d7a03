"""Status inference for supervised agents.

Agents expose no "thinking" / "idle" signal, so status is approximated from
what can be observed cheaply:

1. no handle                          -> ``done``
2. process exited                     -> ``done`` (exit 0 or unknown) / ``error``
3. live, new output since last check  -> ``running`` (activity clock reset)
4. live, quiet for > idle threshold   -> ``waiting``
5. live, quiet but under threshold    -> ``running``

The boundary is strict: quiet for exactly the threshold is still
``running``.  A quietly computing agent will show as ``waiting`` once the
threshold passes -- the threshold trades false idles against detection lag.

``done`` / ``error`` are terminal: dead handles are not polled again.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from loguru import logger

from agentdeck.supervisor.models.enums import WorkspaceStatus

if TYPE_CHECKING:
    from agentdeck.supervisor.host.base import AgentHandle
    from agentdeck.supervisor.models.workspace import Workspace

DEFAULT_IDLE_THRESHOLD = timedelta(seconds=5)


@dataclass(frozen=True)
class Detection:
    """Result of one detection step."""

    status: WorkspaceStatus
    fingerprint: Any
    last_activity_at: datetime


def detect_status(
    handle: AgentHandle | None,
    fingerprint: Any,
    last_activity_at: datetime,
    *,
    now: datetime,
    idle_threshold: timedelta = DEFAULT_IDLE_THRESHOLD,
) -> Detection:
    """Compute the next status from the handle and the stored activity sample.

    Never raises: a failing handle query degrades to ``done``.
    """
    if handle is None:
        return Detection(WorkspaceStatus.DONE, fingerprint, last_activity_at)

    try:
        if not handle.is_live():
            code = handle.exit_code()
            status = WorkspaceStatus.ERROR if code not in (None, 0) else WorkspaceStatus.DONE
            return Detection(status, fingerprint, last_activity_at)
        current = handle.activity_fingerprint()
    except Exception as exc:
        logger.debug("Status: handle query failed ({}), treating agent as done", exc)
        return Detection(WorkspaceStatus.DONE, fingerprint, last_activity_at)

    if current != fingerprint:
        return Detection(WorkspaceStatus.RUNNING, current, now)
    if now - last_activity_at > idle_threshold:
        return Detection(WorkspaceStatus.WAITING, fingerprint, last_activity_at)
    return Detection(WorkspaceStatus.RUNNING, fingerprint, last_activity_at)


def apply_detection(
    workspace: Workspace,
    *,
    now: datetime,
    idle_threshold: timedelta = DEFAULT_IDLE_THRESHOLD,
) -> bool:
    """Run detection for *workspace* in place.  Returns ``True`` if the status changed.

    Workspaces already in a terminal state are left untouched.
    """
    if workspace.status.is_terminal:
        return False

    detection = detect_status(
        workspace.agent_handle,
        workspace.activity_fingerprint,
        workspace.last_activity_at,
        now=now,
        idle_threshold=idle_threshold,
    )
    previous = workspace.status
    workspace.status = detection.status
    workspace.activity_fingerprint = detection.fingerprint
    workspace.last_activity_at = detection.last_activity_at

    if previous != detection.status:
        logger.info("Workspace {}: {} -> {}", workspace.name, previous, detection.status)
        return True
    return False
