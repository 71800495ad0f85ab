"""Git worktree management: worktrees, cleanup analysis, configuration, copy-on-write cloning, agent hooks, process and release checks."""

__version__ = "0.2.0"