"""Copy-on-Write directory cloning."""

import os
import shutil
import subprocess
import sys
from pathlib import Path

import psutil

from gitwarp.errors import (
    CommandError,
    CoWNotSupportedError,
    GitWarpError,
    WorktreeNotFoundError,
)


def _is_under(path: str, mountpoint: str) -> bool:
    mount = mountpoint.rstrip(os.sep) or os.sep
    return mount == os.sep or path == mount or path.startswith(mount + os.sep)


def _filesystem_type(path: str | os.PathLike) -> str:
    real = os.path.realpath(path)
    if not os.path.exists(real):
        raise GitWarpError(f"Failed to check filesystem: {path}: no such file or directory")
    best = None
    for partition in psutil.disk_partitions(all=True):
        if _is_under(real, partition.mountpoint) and (
            best is None or len(partition.mountpoint) > len(best.mountpoint)
        ):
            best = partition
    if best is None:
        raise GitWarpError(f"Failed to check filesystem: no mount found for {path}")
    return best.fstype


def _is_apfs(path: str | os.PathLike) -> bool:
    return _filesystem_type(path) == "apfs"


def is_cow_supported(path: str | os.PathLike) -> bool:
    """Tell whether directories under path can be cloned copy-on-write."""
    if sys.platform == "darwin":
        return _is_apfs(path)
    return False


def clone_directory(src: str | os.PathLike, dest: str | os.PathLike) -> None:
    """Clone src to dest using APFS clones, replacing dest if it exists."""
    src = Path(src)
    dest = Path(dest)
    if not src.exists():
        raise WorktreeNotFoundError(src)
    if sys.platform != "darwin":
        raise CoWNotSupportedError()
    if not _is_apfs(src):
        raise CoWNotSupportedError()

    if dest.exists():
        shutil.rmtree(dest)

    try:
        result = subprocess.run(
            ["cp", "-c", "-R", str(src), str(dest)],
            capture_output=True,
            check=False,
        )
    except OSError as exc:
        raise CommandError("Failed to execute cp command", str(exc)) from exc

    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", errors="replace")
        raise CommandError("Failed to clone directory with CoW", stderr)