"""Configuration model, loading from TOML and environment, and saving."""

import json
import os
import tomllib
from dataclasses import asdict, dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any

import platformdirs
import tomli_w

from gitwarp.errors import ConfigError

ENV_PREFIX = "GIT_WARP_"


def _default_protected_branches() -> list[str]:
    return ["main", "master", "develop"]


@dataclass
class GitConfig:
    """Git related settings."""

    default_branch: str = "main"
    protected_branches: list[str] = field(default_factory=_default_protected_branches)
    auto_fetch: bool = True
    auto_prune: bool = True


@dataclass
class ProcessConfig:
    """Settings for process checks before cleanup."""

    check_processes: bool = True
    auto_kill: bool = False
    kill_timeout: int = 5


@dataclass
class TerminalConfig:
    """Terminal integration settings."""

    app: str = "auto"
    auto_activate: bool = True
    init_commands: list[str] = field(default_factory=list)


@dataclass
class AgentConfig:
    """Agent monitoring settings."""

    enabled: bool = True
    refresh_rate: int = 1000
    max_activities: int = 100
    claude_hooks: bool = True


@dataclass
class Config:
    """Complete gitwarp configuration."""

    terminal_mode: str = "tab"
    worktrees_path: Path | None = None
    use_cow: bool = True
    auto_confirm: bool = False
    git: GitConfig = field(default_factory=GitConfig)
    process: ProcessConfig = field(default_factory=ProcessConfig)
    terminal: TerminalConfig = field(default_factory=TerminalConfig)
    agent: AgentConfig = field(default_factory=AgentConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Build a configuration from plain data; missing keys take defaults."""
        return _build(cls, data, "")

    def to_dict(self) -> dict[str, Any]:
        """Return plain data as written to the configuration file."""
        data = asdict(self)
        if self.worktrees_path is None:
            del data["worktrees_path"]
        else:
            data["worktrees_path"] = str(self.worktrees_path)
        if not data["terminal"]["init_commands"]:
            del data["terminal"]["init_commands"]
        return data

    def to_toml(self) -> str:
        """Serialize to TOML text."""
        return tomli_w.dumps(self.to_dict())

    @classmethod
    def from_toml(cls, text: str) -> "Config":
        """Parse TOML text into a configuration."""
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Failed to parse configuration: {exc}") from exc
        return cls.from_dict(data)

    def apply_env_overrides(self) -> None:
        """Update settings from the GIT_WARP_* environment variables."""
        env = os.environ
        if (mode := env.get("GIT_WARP_TERMINAL_MODE")) is not None:
            self.terminal_mode = mode
        if (confirm := env.get("GIT_WARP_AUTO_CONFIRM")) is not None:
            self.auto_confirm = _parse_bool(confirm, default=False)
        if (cow := env.get("GIT_WARP_USE_COW")) is not None:
            self.use_cow = _parse_bool(cow, default=True)
        if (path := env.get("GIT_WARP_WORKTREES_PATH")) is not None:
            self.worktrees_path = Path(path)


def _parse_bool(text: str, default: bool) -> bool:
    if text == "true":
        return True
    if text == "false":
        return False
    return default


def _build(cls: type, data: Any, where: str) -> Any:
    if not isinstance(data, dict):
        raise ConfigError(f"invalid type for '{where or 'configuration'}': expected a table")
    kwargs = {}
    for item in fields(cls):
        if item.name not in data:
            continue
        key = f"{where}.{item.name}" if where else item.name
        kwargs[item.name] = _convert(data[item.name], item.type, key)
    return cls(**kwargs)


def _convert(value: Any, hint: Any, key: str) -> Any:
    if isinstance(hint, type) and is_dataclass(hint):
        return _build(hint, value, key)
    if hint is bool:
        if isinstance(value, bool):
            return value
    elif hint is int:
        if isinstance(value, int) and not isinstance(value, bool):
            if value < 0:
                raise ConfigError(f"invalid value for '{key}': must not be negative")
            return value
    elif hint is str:
        if isinstance(value, str):
            return value
    elif hint == list[str]:
        if isinstance(value, list) and all(isinstance(v, str) for v in value):
            return list(value)
    elif hint == (Path | None):
        if isinstance(value, (str, os.PathLike)):
            return Path(value)
    raise ConfigError(f"invalid value for '{key}': {value!r}")


def _parse_env_value(text: str) -> Any:
    if text in ("true", "false"):
        return text == "true"
    for kind in (int, float):
        try:
            return kind(text)
        except ValueError:
            pass
    return text


def sample_config() -> str:
    """Return an annotated sample configuration file."""
    config = Config()

    def b(value: bool) -> str:
        return "true" if value else "false"

    return f"""# Git-Warp Configuration
# This file configures git-warp behavior
# You can also set these values via environment variables with GIT_WARP_ prefix

# Terminal mode: tab, window, current, inplace, echo
terminal_mode = "{config.terminal_mode}"

# Use Copy-on-Write when available
use_cow = {b(config.use_cow)}

# Auto-confirm destructive operations
auto_confirm = {b(config.auto_confirm)}

# Custom worktrees directory (optional)
# worktrees_path = "/custom/path/to/worktrees"

[git]
# Default main branch name
default_branch = "{config.git.default_branch}"

# Branches cleanup must never remove
protected_branches = {json.dumps(config.git.protected_branches)}

# Auto-fetch before operations
auto_fetch = {b(config.git.auto_fetch)}

# Auto-prune remote tracking branches
auto_prune = {b(config.git.auto_prune)}

[process]
# Check for processes before cleanup
check_processes = {b(config.process.check_processes)}

# Auto-kill processes during cleanup
auto_kill = {b(config.process.auto_kill)}

# Grace period before force killing (seconds)
kill_timeout = {config.process.kill_timeout}

[terminal]
# Terminal app: auto, iterm2, terminal, warp
app = "{config.terminal.app}"

# Auto-activate new tabs/windows
auto_activate = {b(config.terminal.auto_activate)}

# Commands to run after changing into a worktree
init_commands = []

[agent]
# Enable agent monitoring
enabled = {b(config.agent.enabled)}

# Refresh rate for agent dashboard (milliseconds)
refresh_rate = {config.agent.refresh_rate}

# Maximum activities to track
max_activities = {config.agent.max_activities}

# Enable Claude Code hooks integration
claude_hooks = {b(config.agent.claude_hooks)}
"""


def get_config_path() -> Path:
    """Return the path of the user's configuration file."""
    try:
        base = platformdirs.user_config_path()
    except Exception as exc:  # platform lookup failures
        raise ConfigError("Could not determine config directory") from exc
    return base / "git-warp" / "config.toml"


def load_config(config_path: str | os.PathLike) -> Config:
    """Load defaults, then the TOML file if present, then GIT_WARP_* variables."""
    data: dict[str, Any] = {}
    path = Path(config_path)
    if path.exists():
        try:
            data = tomllib.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
            raise ConfigError(f"Failed to load configuration: {exc}") from exc

    for name, value in os.environ.items():
        if name.startswith(ENV_PREFIX):
            key = name[len(ENV_PREFIX):].lower()
            if key:
                data[key] = _parse_env_value(value)

    try:
        return Config.from_dict(data)
    except ConfigError as exc:
        raise ConfigError(f"Failed to load configuration: {exc.message}") from exc


@dataclass
class ConfigManager:
    """A configuration together with the file it belongs to."""

    config: Config
    config_path: Path

    @classmethod
    def load(cls, config_path: str | os.PathLike | None = None) -> "ConfigManager":
        """Load the configuration from the given or the default location."""
        path = Path(config_path) if config_path is not None else get_config_path()
        return cls(config=load_config(path), config_path=path)

    def save(self) -> None:
        """Write the current configuration to its file."""
        self._write(self.config)

    def create_default_config(self) -> None:
        """Write a default configuration to the file."""
        self._write(Config())

    def config_exists(self) -> bool:
        """Tell whether the configuration file exists."""
        return self.config_path.exists()

    def show_sample_config(self) -> None:
        """Print the sample configuration."""
        print(sample_config())

    def _write(self, config: Config) -> None:
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        content = config.to_toml()
        try:
            self.config_path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Failed to write config file: {exc}") from exc