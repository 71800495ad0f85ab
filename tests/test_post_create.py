import os

from gitwarp.post_create import (
    PostCreateSetupStatus,
    SetupOutcome,
    run_post_create_setup,
)


def create_pnpm_repo(path):
    (path / "package.json").write_text('{"name":"test-repo"}')
    (path / "pnpm-lock.yaml").write_text("lockfileVersion: '9.0'")


def write_script(path, body):
    path.write_text("#!/bin/sh\n" + body)
    path.chmod(0o755)
    return path


def test_skips_existing_worktree(tmp_path):
    create_pnpm_repo(tmp_path)
    status = run_post_create_setup(tmp_path, False, "/missing/pnpm")
    assert status == PostCreateSetupStatus(SetupOutcome.SKIPPED_EXISTING_WORKTREE)


def test_skips_non_pnpm_repo(tmp_path):
    (tmp_path / "package.json").write_text('{"name":"test-repo"}')
    status = run_post_create_setup(tmp_path, True, "/missing/pnpm")
    assert status == PostCreateSetupStatus(SetupOutcome.SKIPPED_NON_PNPM_REPO)


def test_runs_pnpm_install_for_new_pnpm_repo(tmp_path):
    create_pnpm_repo(tmp_path)
    marker = tmp_path / "pnpm-ran.txt"
    pnpm = write_script(
        tmp_path / "fake-pnpm",
        f'printf "%s %s" "$PWD" "$1" > "{marker}"\nexit 0\n',
    )

    status = run_post_create_setup(tmp_path, True, pnpm)

    assert status == PostCreateSetupStatus(SetupOutcome.INSTALLED)
    recorded_dir, recorded_arg = marker.read_text().rsplit(" ", 1)
    assert os.path.realpath(recorded_dir) == os.path.realpath(tmp_path)
    assert recorded_arg == "install"


def test_warns_on_failed_install(tmp_path):
    create_pnpm_repo(tmp_path)
    pnpm = write_script(tmp_path / "fake-pnpm", 'echo "install failed" >&2\nexit 1\n')

    status = run_post_create_setup(tmp_path, True, pnpm)

    assert status == PostCreateSetupStatus(SetupOutcome.WARNED, "install failed")


def test_warning_falls_back_to_stdout(tmp_path):
    create_pnpm_repo(tmp_path)
    pnpm = write_script(tmp_path / "fake-pnpm", 'echo "from stdout"\nexit 2\n')

    status = run_post_create_setup(tmp_path, True, pnpm)

    assert status == PostCreateSetupStatus(SetupOutcome.WARNED, "from stdout")


def test_warning_falls_back_to_exit_status(tmp_path):
    create_pnpm_repo(tmp_path)
    pnpm = write_script(tmp_path / "fake-pnpm", "exit 3\n")

    status = run_post_create_setup(tmp_path, True, pnpm)

    assert status == PostCreateSetupStatus(
        SetupOutcome.WARNED, "pnpm install exited with status 3"
    )


def test_warns_when_pnpm_is_missing(tmp_path):
    create_pnpm_repo(tmp_path)

    status = run_post_create_setup(tmp_path, True, "/missing/pnpm")

    assert status.outcome is SetupOutcome.WARNED
    assert "/missing/pnpm" in status.message