"""Installing, removing and reporting git-warp agent status hooks."""

import copy
import json
import os
from enum import Enum
from pathlib import Path
from typing import Any

from gitwarp.errors import GitWarpError

GIT_WARP_HOOK_PREFIX = "agent_status_"

_HOOK_EVENTS = (
    ("UserPromptSubmit", "processing", "agent_status_userpromptsubmit"),
    ("Stop", "waiting", "agent_status_stop"),
    ("PreToolUse", "working", "agent_status_pretooluse"),
    ("PostToolUse", "processing", "agent_status_posttooluse"),
    ("SubagentStop", "subagent_complete", "agent_status_subagent_stop"),
)


class HookRuntime(Enum):
    """An agent runtime whose hook configuration git-warp manages."""

    CLAUDE = "claude"
    CODEX = "codex"

    @property
    def display_name(self) -> str:
        return "Claude Code" if self is HookRuntime.CLAUDE else "Codex"

    @property
    def status_root_dir(self) -> str:
        return ".claude" if self is HookRuntime.CLAUDE else ".codex"

    @property
    def settings_file_name(self) -> str:
        return "settings.json" if self is HookRuntime.CLAUDE else "hooks.json"

    @property
    def wraps_hooks_at_root(self) -> bool:
        """Claude keeps its hooks under a top-level "hooks" key."""
        return self is HookRuntime.CLAUDE

    def user_settings_path(self) -> Path:
        """The hook settings file in the user's home directory."""
        try:
            home = Path.home()
        except RuntimeError as exc:
            raise GitWarpError("Could not find home directory") from exc
        return home / self.status_root_dir / self.settings_file_name

    def project_settings_path(self) -> Path:
        """The hook settings file in the current project directory."""
        return Path.cwd() / self.status_root_dir / self.settings_file_name


def parse_runtimes(runtime: str) -> list[HookRuntime]:
    """Turn 'claude', 'codex' or 'all' into the runtimes it names."""
    match runtime:
        case "claude":
            return [HookRuntime.CLAUDE]
        case "codex":
            return [HookRuntime.CODEX]
        case "all":
            return [HookRuntime.CLAUDE, HookRuntime.CODEX]
    raise GitWarpError("Invalid runtime. Use: claude, codex, or all")


def _build_hook_entry(runtime: HookRuntime, status: str, hook_id: str) -> dict[str, Any]:
    root = runtime.status_root_dir
    command = (
        "ROOT=$(git rev-parse --show-toplevel 2>/dev/null || pwd) && "
        f'mkdir -p "$ROOT/{root}/git-warp" && '
        f'echo "{{\\"status\\":\\"{status}\\",\\"last_activity\\":\\"$(date -Iseconds)\\"}}"'
        f' > "$ROOT/{root}/git-warp/status"'
    )
    return {
        "hooks": [{"type": "command", "command": command}],
        "git_warp_hook_id": hook_id,
    }


def get_hooks_config(runtime: HookRuntime) -> dict[str, Any]:
    """The hook configuration git-warp installs for runtime."""
    hooks = {
        event: [_build_hook_entry(runtime, status, hook_id)]
        for event, status, hook_id in _HOOK_EVENTS
    }
    return {"hooks": hooks} if runtime.wraps_hooks_at_root else hooks


def is_git_warp_hook(hook: Any) -> bool:
    """Tell whether a hook entry was installed by git-warp."""
    if not isinstance(hook, dict):
        return False
    hook_id = hook.get("git_warp_hook_id")
    return isinstance(hook_id, str) and hook_id.startswith(GIT_WARP_HOOK_PREFIX)


def _dumps(data: Any) -> str:
    return json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False)


def _read_settings(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise GitWarpError(f"Failed to parse {path}: {exc}") from exc


def _hooks_object(settings: Any, runtime: HookRuntime) -> dict[str, Any] | None:
    container = settings
    if runtime.wraps_hooks_at_root:
        container = settings.get("hooks") if isinstance(settings, dict) else None
    return container if isinstance(container, dict) else None


def _ensure_hooks_object(settings: Any, runtime: HookRuntime) -> tuple[dict, dict]:
    """Return the (possibly replaced) settings root and its hooks mapping."""
    root = settings if isinstance(settings, dict) else {}
    if not runtime.wraps_hooks_at_root:
        return root, root
    hooks = root.get("hooks")
    if not isinstance(hooks, dict):
        hooks = {}
        root["hooks"] = hooks
    return root, hooks


def merge_hooks_into_settings(settings_path: str | os.PathLike, runtime: HookRuntime) -> None:
    """Install git-warp hooks into a settings file, keeping other hooks."""
    path = Path(settings_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    settings: Any = _read_settings(path) if path.exists() else {}

    to_merge = _hooks_object(get_hooks_config(runtime), runtime) or {}
    settings, settings_hooks = _ensure_hooks_object(settings, runtime)

    for hook_type, new_entries in to_merge.items():
        existing = settings_hooks.get(hook_type)
        if not isinstance(existing, list):
            existing = []
        kept = [hook for hook in existing if not is_git_warp_hook(hook)]
        if isinstance(new_entries, list):
            kept.extend(copy.deepcopy(new_entries))
        settings_hooks[hook_type] = kept

    path.write_text(_dumps(settings), encoding="utf-8")
    print(f"{runtime.display_name} hooks installed to: {path}")


def remove_hooks_from_settings(settings_path: str | os.PathLike, runtime: HookRuntime) -> None:
    """Remove git-warp hooks from a settings file, keeping other hooks."""
    path = Path(settings_path)
    if not path.exists():
        print(f"Settings file not found: {path}")
        return

    settings, hooks = _ensure_hooks_object(_read_settings(path), runtime)
    for hook_type, entries in hooks.items():
        if isinstance(entries, list):
            hooks[hook_type] = [hook for hook in entries if not is_git_warp_hook(hook)]

    path.write_text(_dumps(settings), encoding="utf-8")
    print(f"{runtime.display_name} hooks removed from: {path}")


def install_hooks(level: str | None, runtime: str) -> None:
    """Install hooks at level 'user' or 'project', or print them ('console')."""
    runtimes = parse_runtimes(runtime)
    match level:
        case None | "console":
            for index, item in enumerate(runtimes):
                if index > 0:
                    print()
                print(f"Add this to your {item.display_name} hook config:")
                print(_dumps(get_hooks_config(item)))
        case "user":
            for item in runtimes:
                merge_hooks_into_settings(item.user_settings_path(), item)
        case "project":
            for item in runtimes:
                merge_hooks_into_settings(item.project_settings_path(), item)
        case _:
            print("Invalid level. Use: user, project, or console")


def remove_hooks(level: str, runtime: str) -> None:
    """Remove hooks installed at level 'user' or 'project'."""
    runtimes = parse_runtimes(runtime)
    match level:
        case "user":
            for item in runtimes:
                remove_hooks_from_settings(item.user_settings_path(), item)
        case "project":
            for item in runtimes:
                remove_hooks_from_settings(item.project_settings_path(), item)
        case _:
            print("Invalid level. Use: user or project")


def _show_hooks_for_path(path: Path, runtime: HookRuntime) -> None:
    if not path.exists():
        print("  No settings file found")
        return

    hooks = _hooks_object(_read_settings(path), runtime)
    if hooks is None:
        print("  No git-warp hooks installed")
        return

    found = False
    for hook_type, entries in hooks.items():
        if not isinstance(entries, list):
            continue
        count = sum(1 for hook in entries if is_git_warp_hook(hook))
        if count:
            if not found:
                print("  ✓ Hooks installed:")
                found = True
            print(f"    {hook_type}: {count} git-warp hook(s)")

    if not found:
        print("  No git-warp hooks installed")


def _show_config(label: str, runtime: HookRuntime, locate) -> None:
    try:
        path = locate()
    except (GitWarpError, OSError):
        print(f"❌ {label} config: Unable to locate")
        return
    if path.exists():
        print(f"✅ {label} config: {path}")
        _show_hooks_for_path(path, runtime)
    else:
        print(f"❌ {label} config: Not found")


def show_hooks_status(runtime: str) -> None:
    """Print where hooks are configured and how many git-warp hooks each has."""
    runtimes = parse_runtimes(runtime)

    print("🔧 Git-Warp Agent Integration Status")
    print("====================================")

    for index, item in enumerate(runtimes):
        if index > 0:
            print()
        print(f"{item.display_name}:")
        _show_config("User", item, item.user_settings_path)
        _show_config("Project", item, item.project_settings_path)

    print("\n📖 Integration Guide:")
    print("   warp hooks-install --level user --runtime codex")
    print("   warp hooks-install --level project --runtime claude")
    print("   warp hooks-install --level user --runtime all")