# gitwarp

A library for managing Git worktrees: creating a worktree and branch in one
step, listing worktrees with their state, deciding which branches are safe to
clean up, cloning directories copy-on-write where the filesystem allows it,
finding processes that run inside a worktree, and merging agent status hooks
into Claude Code and Codex settings files.

Git must be installed and on `PATH`; the repository operations run the `git`
command in a subprocess.

## Worktrees

```python
from gitwarp.git import GitRepository

repo = GitRepository.find()          # repository containing the current directory
for wt in repo.list_worktrees():
    print(wt.branch or "(detached)", wt.path, wt.is_primary, wt.is_current)

path = repo.get_worktree_path("feature/login", None)   # <primary root>/../worktrees/feature-login
repo.create_worktree_and_branch("feature/login", path, None)
```

`GitRepository.open(path)` opens a repository at a given directory.
`list_worktrees()` marks the first worktree as primary, marks the one whose
path matches the repository root as current, and treats a worktree without a
branch as detached.

`create_worktree_and_branch` checks out an existing branch, or creates the
branch from `from_commit` (default `HEAD`). Branch names are turned into
directory names by dropping leading and trailing `/` and replacing `/` and
`\` with `-`. A relative base such as `".worktrees"` is resolved against the
primary worktree, even when called from a linked worktree; an absolute base is
used as given.

Other methods: `remove_worktree`, `prune_worktrees`, `delete_branch(name,
force)`, `branch_exists`, `list_local_branches_matching_prefix`,
`get_head_commit`, `get_main_branch`, `has_uncommitted_changes(path)`,
`is_branch_merged(branch, target)` and `fetch_branches()`, which returns
`False` (and logs a warning) when the fetch fails.

## Cleanup analysis

```python
from gitwarp.git import GitRepository

repo = GitRepository.find()
statuses = repo.analyze_branches_for_cleanup(repo.list_worktrees(), ["staging"], "main")
for status in statuses:
    print(status.branch, status.is_merged, status.is_identical,
          status.has_remote, status.has_uncommitted_changes)
```

Protected branches default to `main`, `master` and `develop`, and the default
branch to `main`, when passed as `None`. The primary worktree, worktrees
without a branch, the base branch and protected branches are never reported.
The base branch (`cleanup_base_branch`) is the remote default from
`refs/remotes/origin/HEAD` if set, otherwise the primary worktree's branch,
otherwise the configured default, otherwise `get_main_branch()`.

## Configuration

```python
from gitwarp.config import ConfigManager, sample_config

manager = ConfigManager.load()           # <user config dir>/git-warp/config.toml
print(manager.config.terminal_mode)      # "tab" unless overridden
manager.config.auto_confirm = True
manager.save()

print(sample_config())                   # commented template with all defaults
```

`load_config(path)` starts from the defaults, applies the TOML file if it
exists, then every `GIT_WARP_<KEY>` environment variable as the top-level key
`<key>` (values `true`/`false` and numbers are converted). Bad values raise
`ConfigError`. `Config.apply_env_overrides()` separately reads
`GIT_WARP_TERMINAL_MODE`, `GIT_WARP_AUTO_CONFIRM`, `GIT_WARP_USE_COW` and
`GIT_WARP_WORKTREES_PATH`. `Config.to_toml()` / `Config.from_toml()` and
`to_dict()` / `from_dict()` convert to and from text and plain data.

## Agent hooks

```python
from gitwarp.hooks import install_hooks, remove_hooks, show_hooks_status

install_hooks("console", "all")     # print the JSON to paste
install_hooks("project", "codex")   # merge into ./.codex/hooks.json
show_hooks_status("all")
remove_hooks("user", "claude")      # drop only the hooks gitwarp added
```

Runtimes are `claude`, `codex` or `all`; any other value raises
`GitWarpError`. Claude settings live in `.claude/settings.json` with hooks
under a `"hooks"` key; Codex hooks live at the top level of
`.codex/hooks.json`. Each installed hook writes the agent's status to
`<repo>/.claude/git-warp/status` or `<repo>/.codex/git-warp/status`. Hooks are
recognised by a `git_warp_hook_id` starting with `agent_status_`, so other
hooks are kept on install and removal. The lower-level
`merge_hooks_into_settings(path, runtime)` and
`remove_hooks_from_settings(path, runtime)` work on any file.

## Other helpers

- `gitwarp.cow.is_cow_supported(path)` is true only on macOS for a path on
  APFS; `clone_directory(src, dest)` clones with `cp -c -R` there, replacing
  `dest`, and raises `CoWNotSupportedError` elsewhere.
- `gitwarp.post_create.run_post_create_setup(path, newly_created, "pnpm")`
  runs `pnpm install` in a new worktree holding both `package.json` and
  `pnpm-lock.yaml`, and returns a `PostCreateSetupStatus` whose `outcome` is a
  `SetupOutcome` (with a `message` when it warned) instead of raising.
- `gitwarp.process.ProcessManager` finds processes whose working directory is
  inside a directory (busiest first), totals them with `ProcessStats`, and
  terminates them after a `[y/N]` prompt unless `auto_confirm` is set: a
  graceful stop first, a forced kill after two seconds.
- `gitwarp.release.run_release_check(ReleaseCheckOptions(version, metadata_only))`
  reads `package.version` from `Cargo.toml` in the current directory, checks
  that `CHANGELOG.md`, `docs/releases/v<version>.md`, `docs/install.md` and
  `install.sh` agree with it, and unless `metadata_only` is set runs the cargo
  format, test and build steps and the built binary's smoke checks.

All failures are raised as subclasses of `gitwarp.errors.GitWarpError`.

## What it does not do

gitwarp is a library only: it installs no command-line program. The guide
printed by `show_hooks_status` mentions a `warp` command, which this package
does not provide. There is no terminal integration (opening tabs or windows),
no agent session discovery or dashboard, and no interactive worktree picker;
the settings `terminal_mode`, `terminal` and `agent` are stored and loaded but
not acted on here.