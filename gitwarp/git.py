"""Git repository and worktree operations driven by the git command."""

import logging
import os
import subprocess
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from gitwarp.config import GitConfig
from gitwarp.errors import CommandError, NotInGitRepositoryError

logger = logging.getLogger(__name__)

_REMOTE_HEAD_PREFIX = "refs/remotes/origin/"


@dataclass
class WorktreeInfo:
    """One entry of ``git worktree list``."""

    path: Path
    branch: str = ""
    head: str = ""
    is_primary: bool = False
    is_current: bool = False
    is_detached: bool = False


@dataclass
class BranchStatus:
    """What cleanup knows about the branch checked out in a worktree."""

    branch: str
    path: Path
    has_remote: bool
    is_merged: bool
    is_identical: bool
    has_uncommitted_changes: bool


def is_protected_branch(branch: str, protected_branches: Iterable[str]) -> bool:
    """Tell whether branch is one of the protected branches."""
    return any(protected.strip() == branch for protected in protected_branches)


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def _canonical(path: Path) -> Path:
    try:
        return Path(os.path.realpath(path, strict=True))
    except OSError:
        return path


def _run_git(
    args: Sequence[str], cwd: str | os.PathLike, action: str
) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(
            ["git", *args], cwd=cwd, capture_output=True, check=False
        )
    except OSError as exc:
        raise CommandError(action, str(exc)) from exc


def _git_succeeds(args: Sequence[str], cwd: str | os.PathLike) -> subprocess.CompletedProcess | None:
    """Run git, returning None where the command could not be started."""
    try:
        return subprocess.run(
            ["git", *args], cwd=cwd, capture_output=True, check=False
        )
    except OSError:
        return None


class GitRepository:
    """A git repository rooted at a working directory."""

    def __init__(self, root_path: str | os.PathLike) -> None:
        self.root_path = Path(root_path)

    @classmethod
    def find(cls) -> "GitRepository":
        """Discover the repository containing the current directory."""
        result = _git_succeeds(["rev-parse", "--show-toplevel"], Path.cwd())
        if result is None or result.returncode != 0:
            raise NotInGitRepositoryError()
        top = _decode(result.stdout).strip()
        if not top:
            raise NotInGitRepositoryError()
        return cls(Path(top))

    @classmethod
    def open(cls, path: str | os.PathLike) -> "GitRepository":
        """Open the repository at path."""
        path = Path(path)
        if not path.is_dir():
            raise NotInGitRepositoryError()
        result = _git_succeeds(["rev-parse", "--git-dir"], path)
        if result is None or result.returncode != 0:
            raise NotInGitRepositoryError()
        return cls(path)

    def _git(self, args: Sequence[str], action: str) -> subprocess.CompletedProcess:
        return _run_git(args, self.root_path, action)

    def _checked(self, args: Sequence[str], action: str) -> subprocess.CompletedProcess:
        result = self._git(args, action)
        if result.returncode != 0:
            raise CommandError(action, _decode(result.stderr))
        return result

    def list_worktrees(self) -> list[WorktreeInfo]:
        """List all worktrees; the first is the primary one."""
        result = self._git(["worktree", "list", "--porcelain"], "Failed to list worktrees")
        if result.returncode != 0:
            raise CommandError("Git worktree list failed")

        worktrees: list[WorktreeInfo] = []
        current: WorktreeInfo | None = None
        for line in _decode(result.stdout).splitlines():
            if line.startswith("worktree "):
                if current is not None:
                    worktrees.append(current)
                current = WorktreeInfo(path=Path(line.removeprefix("worktree ")))
            elif current is None:
                continue
            elif line.startswith("HEAD "):
                current.head = line.removeprefix("HEAD ")
            elif line.startswith("branch refs/heads/"):
                current.branch = line.removeprefix("branch refs/heads/")
            elif line == "bare":
                current.is_primary = True
            elif line == "detached":
                current.is_detached = True
        if current is not None:
            worktrees.append(current)

        if worktrees:
            worktrees[0].is_primary = True

        current_root = _canonical(self.root_path)
        for worktree in worktrees:
            worktree.is_current = _canonical(worktree.path) == current_root
            if not worktree.branch:
                worktree.is_detached = True
        return worktrees

    def create_worktree_and_branch(
        self,
        branch_name: str,
        worktree_path: str | os.PathLike,
        from_commit: str | None = None,
    ) -> None:
        """Add a worktree for branch_name, creating the branch if needed."""
        path = str(worktree_path)
        if self.branch_exists(branch_name):
            self._checked(["worktree", "add", path, branch_name], "Failed to create worktree")
        else:
            self._checked(
                ["worktree", "add", "-b", branch_name, path, from_commit or "HEAD"],
                "Failed to create worktree and branch",
            )

    def remove_worktree(self, worktree_path: str | os.PathLike) -> None:
        """Remove a worktree."""
        self._checked(["worktree", "remove", str(worktree_path)], "Failed to remove worktree")

    def delete_branch(self, branch_name: str, force: bool = False) -> None:
        """Delete a local branch, forcibly if force is set."""
        flag = "-D" if force else "-d"
        result = self._git(["branch", flag, branch_name], "Failed to delete branch")
        if result.returncode != 0:
            raise CommandError(
                f"Failed to delete branch {branch_name}", _decode(result.stderr)
            )

    def prune_worktrees(self) -> None:
        """Clean up stale worktree references."""
        self._checked(["worktree", "prune"], "Failed to prune worktrees")

    def analyze_branches_for_cleanup(
        self,
        worktrees: Sequence[WorktreeInfo],
        protected_branches: Sequence[str] | None = None,
        default_branch: str | None = None,
    ) -> list[BranchStatus]:
        """Describe every worktree branch that cleanup may consider."""
        defaults = GitConfig()
        if protected_branches is None:
            protected_branches = defaults.protected_branches
        if default_branch is None:
            default_branch = defaults.default_branch

        base = self.cleanup_base_branch(worktrees, default_branch)
        statuses = []
        for worktree in worktrees:
            branch = worktree.branch
            if (
                worktree.is_primary
                or not branch
                or branch == base
                or is_protected_branch(branch, protected_branches)
            ):
                continue

            remote = self._git(
                ["config", f"branch.{branch}.remote"], "Failed to check remote"
            )
            has_remote = remote.returncode == 0 and bool(remote.stdout)

            merged = _git_succeeds(
                ["merge-base", "--is-ancestor", branch, base], self.root_path
            )
            identical = _git_succeeds(["diff", "--quiet", base, branch], self.root_path)
            status = _git_succeeds(["status", "--porcelain"], worktree.path)

            statuses.append(
                BranchStatus(
                    branch=branch,
                    path=worktree.path,
                    has_remote=has_remote,
                    is_merged=merged is not None and merged.returncode == 0,
                    is_identical=identical is not None and identical.returncode == 0,
                    has_uncommitted_changes=status is not None and bool(status.stdout),
                )
            )
        return statuses

    def cleanup_base_branch(
        self, worktrees: Sequence[WorktreeInfo], configured_default_branch: str
    ) -> str:
        """Resolve the branch that cleanup compares candidates against."""
        remote_default = self._remote_default_branch()
        if remote_default is not None:
            return remote_default

        for worktree in worktrees:
            if worktree.is_primary and worktree.branch.strip():
                return worktree.branch

        configured = configured_default_branch.strip()
        if configured:
            return configured
        return self.get_main_branch()

    def _remote_default_branch(self) -> str | None:
        result = self._git(
            ["symbolic-ref", "refs/remotes/origin/HEAD"],
            "Failed to inspect remote default branch",
        )
        if result.returncode != 0:
            return None
        ref = _decode(result.stdout).strip()
        if ref.startswith(_REMOTE_HEAD_PREFIX):
            return ref.removeprefix(_REMOTE_HEAD_PREFIX)
        return None

    def fetch_branches(self) -> bool:
        """Fetch and prune all remotes; False when the fetch failed."""
        result = self._git(["fetch", "--all", "--prune"], "Failed to fetch")
        if result.returncode != 0:
            logger.warning("Git fetch failed: %s", _decode(result.stderr))
            return False
        return True

    def branch_exists(self, branch_name: str) -> bool:
        """Tell whether a local branch exists."""
        result = self._git(
            ["show-ref", "--verify", "--quiet", f"refs/heads/{branch_name}"],
            "Failed to check branch existence",
        )
        return result.returncode == 0

    def list_local_branches_matching_prefix(self, prefix: str) -> list[str]:
        """Sorted, distinct local branches starting with prefix."""
        result = self._checked(
            ["for-each-ref", "--format=%(refname:short)", "refs/heads"],
            "Failed to list local branches",
        )
        lines = _decode(result.stdout).splitlines()
        return sorted({line for line in lines if line.startswith(prefix)})

    def get_head_commit(self) -> str:
        """Return the hash of the HEAD commit."""
        result = self._checked(["rev-parse", "HEAD"], "Failed to get HEAD commit")
        return _decode(result.stdout).strip()

    def get_worktree_path(
        self, branch_name: str, worktrees_path: str | os.PathLike | None = None
    ) -> Path:
        """Where the worktree for branch_name goes, under an optional base."""
        sanitized = branch_name.strip("/").replace("/", "-").replace("\\", "-")
        if worktrees_path is None:
            base = self._primary_worktree_root() / "../worktrees"
        else:
            base = Path(worktrees_path)
            if not base.is_absolute():
                base = self._primary_worktree_root() / base
        return base / sanitized

    def _primary_worktree_root(self) -> Path:
        try:
            worktrees = self.list_worktrees()
        except CommandError:
            return self.root_path
        for worktree in worktrees:
            if worktree.is_primary:
                return worktree.path
        return self.root_path

    def get_main_branch(self) -> str:
        """The remote default branch, else main if it exists, else master."""
        result = _git_succeeds(["symbolic-ref", "refs/remotes/origin/HEAD"], self.root_path)
        if result is not None and result.returncode == 0:
            ref = _decode(result.stdout).strip()
            if ref.startswith(_REMOTE_HEAD_PREFIX):
                return ref.removeprefix(_REMOTE_HEAD_PREFIX)
        return "main" if self.branch_exists("main") else "master"

    def has_uncommitted_changes(self, path: str | os.PathLike) -> bool:
        """Tell whether the worktree at path has staged or unstaged changes."""
        result = _run_git(["status", "--porcelain"], path, "Failed to check git status")
        if result.returncode != 0:
            raise CommandError("Git status failed", _decode(result.stderr))
        return bool(result.stdout)

    def is_branch_merged(self, branch: str, target_branch: str) -> bool:
        """Tell whether branch is an ancestor of target_branch."""
        result = self._git(
            ["merge-base", "--is-ancestor", branch, target_branch],
            "Failed to check merge status",
        )
        return result.returncode == 0