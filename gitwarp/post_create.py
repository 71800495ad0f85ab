"""Setup run in a freshly created worktree."""

import os
import subprocess
from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class SetupOutcome(Enum):
    """What post-create setup did."""

    SKIPPED_EXISTING_WORKTREE = "skipped_existing_worktree"
    SKIPPED_NON_PNPM_REPO = "skipped_non_pnpm_repo"
    INSTALLED = "installed"
    WARNED = "warned"


@dataclass(frozen=True)
class PostCreateSetupStatus:
    """The outcome of post-create setup, with a message when it warned."""

    outcome: SetupOutcome
    message: str | None = None


def _is_pnpm_repo(worktree_path: Path) -> bool:
    return (worktree_path / "package.json").is_file() and (
        worktree_path / "pnpm-lock.yaml"
    ).is_file()


def _failure_message(result: subprocess.CompletedProcess) -> str:
    stderr = result.stderr.decode("utf-8", errors="replace").strip()
    if stderr:
        return stderr
    stdout = result.stdout.decode("utf-8", errors="replace").strip()
    if stdout:
        return stdout
    if result.returncode < 0:
        return "pnpm install terminated by signal"
    return f"pnpm install exited with status {result.returncode}"


def run_post_create_setup(
    worktree_path: str | os.PathLike,
    newly_created: bool,
    pnpm_path: str | os.PathLike = "pnpm",
) -> PostCreateSetupStatus:
    """Run ``pnpm install`` in a new worktree of a pnpm project."""
    path = Path(worktree_path)
    if not newly_created:
        return PostCreateSetupStatus(SetupOutcome.SKIPPED_EXISTING_WORKTREE)
    if not _is_pnpm_repo(path):
        return PostCreateSetupStatus(SetupOutcome.SKIPPED_NON_PNPM_REPO)

    try:
        result = subprocess.run(
            [os.fspath(pnpm_path), "install"],
            cwd=path,
            capture_output=True,
            check=False,
        )
    except OSError as exc:
        return PostCreateSetupStatus(SetupOutcome.WARNED, str(exc))

    if result.returncode == 0:
        return PostCreateSetupStatus(SetupOutcome.INSTALLED)
    return PostCreateSetupStatus(SetupOutcome.WARNED, _failure_message(result))