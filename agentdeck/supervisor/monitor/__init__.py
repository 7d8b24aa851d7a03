"""Monitoring pipeline for supervised workspaces.

- **status**: Status inference (handle liveness + output activity -> WorkspaceStatus)
- **reconcile**: Slot position reconciliation against the host's live slot list
- **poller**: Periodic tick driving status detection, reconciliation and observers
- **observers**: Slot relabelling and event fan-out for dashboards
"""
