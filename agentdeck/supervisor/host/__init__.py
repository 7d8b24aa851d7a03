"""Host collaborators: agent spawning and UI slots.

- **base**: Protocols (``AgentHandle``, ``AgentSpawner``, ``SlotHost``) and ``Slot``
- **tmux**: tmux-backed implementation (windows as slots, panes as agents)
"""
