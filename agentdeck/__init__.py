"""agentdeck - supervise interactive coding agents in tmux windows and git worktrees."""

__version__ = "0.1.0"
