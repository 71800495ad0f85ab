"""Exception types raised throughout gitwarp."""

import os


class GitWarpError(Exception):
    """Base class for every error raised by gitwarp."""


class CommandError(GitWarpError):
    """An external command could not be started or reported failure."""

    def __init__(self, action: str, detail: str = "") -> None:
        self.action = action
        self.detail = detail.strip()
        message = f"{action}: {self.detail}" if self.detail else action
        super().__init__(message)


class NotInGitRepositoryError(GitWarpError):
    """The working directory is not inside a git repository."""

    def __init__(self) -> None:
        super().__init__("Not in a git repository")


class BranchAlreadyExistsError(GitWarpError):
    """A branch that was to be created exists already."""

    def __init__(self, branch: str) -> None:
        self.branch = branch
        super().__init__(f"Branch '{branch}' already exists")


class WorktreeAlreadyExistsError(GitWarpError):
    """A worktree that was to be created exists already."""

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = str(path)
        super().__init__(f"Worktree '{self.path}' already exists")


class BranchNotFoundError(GitWarpError):
    """A branch could not be found."""

    def __init__(self, branch: str) -> None:
        self.branch = branch
        super().__init__(f"Branch '{branch}' not found")


class WorktreeNotFoundError(GitWarpError):
    """A worktree or directory could not be found."""

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = str(path)
        super().__init__(f"Worktree '{self.path}' not found")


class CoWNotSupportedError(GitWarpError):
    """The filesystem cannot clone directories copy-on-write."""

    def __init__(self) -> None:
        super().__init__("Copy-on-Write is not supported on this filesystem")


class WorktreeCreationFailedError(GitWarpError):
    """A worktree could not be created."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Failed to create worktree: {reason}")


class TerminalNotSupportedError(GitWarpError):
    """Terminal integration is unavailable on this platform."""

    def __init__(self) -> None:
        super().__init__("Terminal integration not supported on this platform")


class NoProcessesFoundError(GitWarpError):
    """No processes run inside the given directory."""

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = str(path)
        super().__init__(f"No processes found in directory '{self.path}'")


class ProcessTerminationFailedError(GitWarpError):
    """One or more processes could not be terminated."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Failed to terminate processes: {reason}")


class ConfigError(GitWarpError):
    """The configuration could not be loaded, parsed or written."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Configuration error: {message}")