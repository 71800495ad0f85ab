"""Finding and terminating processes that run inside a directory."""

import os
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

import psutil

from gitwarp.errors import WorktreeNotFoundError

HIGH_CPU_THRESHOLD = 10.0
GRACE_PERIOD_SECONDS = 2.0

_ATTRS = ["pid", "name", "cmdline", "cwd", "cpu_percent", "memory_info", "create_time"]


@dataclass
class ProcessInfo:
    """A process found working inside a directory."""

    pid: int
    name: str
    cmd: str
    working_dir: Path
    cpu_usage: float
    memory_usage: int
    start_time: int


@dataclass
class ProcessStats:
    """Totals over the processes found in a directory."""

    total_count: int
    total_memory: int
    total_cpu: float
    high_cpu_count: int
    processes: list[ProcessInfo] = field(default_factory=list)

    @classmethod
    def from_processes(cls, processes: Sequence[ProcessInfo]) -> "ProcessStats":
        """Compute the totals for the given processes."""
        items = list(processes)
        return cls(
            total_count=len(items),
            total_memory=sum(p.memory_usage for p in items),
            total_cpu=sum(p.cpu_usage for p in items),
            high_cpu_count=sum(1 for p in items if p.cpu_usage > HIGH_CPU_THRESHOLD),
            processes=items,
        )


def _info_from(info: dict) -> ProcessInfo | None:
    cwd = info.get("cwd")
    if not cwd:
        return None
    memory = info.get("memory_info")
    create_time = info.get("create_time")
    return ProcessInfo(
        pid=info["pid"],
        name=info.get("name") or "",
        cmd=" ".join(info.get("cmdline") or []),
        working_dir=Path(cwd),
        cpu_usage=float(info.get("cpu_percent") or 0.0),
        memory_usage=memory.rss if memory is not None else 0,
        start_time=int(create_time) if create_time is not None else 0,
    )


class ProcessManager:
    """Looks up and terminates processes by working directory."""

    def find_processes_in_directory(self, path: str | os.PathLike) -> list[ProcessInfo]:
        """Processes whose working directory lies under path, busiest first."""
        try:
            target = Path(os.path.realpath(path, strict=True))
        except OSError as exc:
            raise WorktreeNotFoundError(path) from exc

        found = []
        for proc in psutil.process_iter(_ATTRS, ad_value=None):
            info = _info_from(proc.info)
            if info is not None and info.working_dir.is_relative_to(target):
                found.append(info)

        found.sort(key=lambda p: p.cpu_usage, reverse=True)
        return found

    def terminate_processes(
        self, processes: Sequence[ProcessInfo], auto_confirm: bool = False
    ) -> bool:
        """Terminate processes after confirmation; True when all were stopped."""
        if not processes:
            return True

        self._display_process_list(processes)

        if not auto_confirm and not self._confirm_termination():
            print("❌ Process termination cancelled")
            return False

        succeeded = failed = 0
        for process in processes:
            print(f"🔪 Terminating PID {process.pid}: {process.name}")
            if self._terminate_single_process(process.pid):
                succeeded += 1
                print("  ✅ Terminated successfully")
            else:
                failed += 1
                print("  ❌ Failed to terminate")

        print(
            f"\n📊 Process termination complete: {succeeded} succeeded, {failed} failed"
        )
        return failed == 0

    def has_processes_in_directory(self, path: str | os.PathLike) -> bool:
        """Tell whether any process works inside path."""
        return bool(self.find_processes_in_directory(path))

    def get_directory_process_stats(self, path: str | os.PathLike) -> ProcessStats:
        """Totals over the processes working inside path."""
        return ProcessStats.from_processes(self.find_processes_in_directory(path))

    def kill_directory_processes(
        self, path: str | os.PathLike, auto_confirm: bool = False
    ) -> bool:
        """Terminate every process working inside path."""
        processes = self.find_processes_in_directory(path)
        if not processes:
            print("✨ No processes found in directory")
            return True
        return self.terminate_processes(processes, auto_confirm)

    @staticmethod
    def _display_process_list(processes: Sequence[ProcessInfo]) -> None:
        print(f"\n⚠️  Found {len(processes)} processes in worktree:")
        for process in processes:
            memory_mb = process.memory_usage // 1024 // 1024
            print(
                f"  • PID {process.pid}: {process.name} "
                f"(CPU: {process.cpu_usage:.1f}%, Mem: {memory_mb}MB)"
            )
            print(f"    Working dir: {process.working_dir}")
            if process.cmd:
                print(f"    Command: {process.cmd}")

    @staticmethod
    def _confirm_termination() -> bool:
        print("\n❓ Terminate these processes? [y/N]: ")
        sys.stdout.flush()
        answer = sys.stdin.readline()
        return answer.strip().lower().startswith("y")

    @staticmethod
    def _terminate_single_process(pid: int) -> bool:
        """Send a graceful stop, then force-kill after the grace period."""
        try:
            proc = psutil.Process(pid)
        except psutil.Error:
            return False

        try:
            proc.terminate()
        except psutil.Error:
            return _force_kill(proc)

        try:
            proc.wait(timeout=GRACE_PERIOD_SECONDS)
            return True
        except psutil.TimeoutExpired:
            return _force_kill(proc)
        except psutil.Error:
            return True


def _force_kill(proc: psutil.Process) -> bool:
    try:
        proc.kill()
    except psutil.Error:
        return False
    return True