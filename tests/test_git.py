import subprocess
from pathlib import Path

import pytest

from gitwarp.errors import CommandError, NotInGitRepositoryError
from gitwarp.git import GitRepository, WorktreeInfo, is_protected_branch


def git(repo: Path, *args: str) -> subprocess.CompletedProcess:
    return subprocess.run(["git", *args], cwd=repo, capture_output=True, check=False)


def make_repo(path: Path, initial_branch: str = "main") -> Path:
    path.mkdir(parents=True, exist_ok=True)
    git(path, "init", "--initial-branch", initial_branch)
    git(path, "config", "user.email", "test@example.com")
    git(path, "config", "user.name", "Test User")
    git(path, "config", "commit.gpgsign", "false")
    (path / "README.md").write_text("# Test Repository")
    git(path, "add", ".")
    git(path, "commit", "-m", "Initial commit")
    return path


@pytest.fixture
def isolated(monkeypatch, tmp_path):
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path.resolve()))
    return tmp_path


@pytest.fixture
def repo(isolated):
    return make_repo(isolated / "repo")


def test_is_protected_branch_trims_entries():
    assert is_protected_branch("main", [" main ", "develop"])
    assert not is_protected_branch("feature", ["main", "develop"])


def test_open_repository(repo):
    opened = GitRepository.open(repo)
    assert opened.root_path == repo


def test_open_non_repository_fails(isolated):
    plain = isolated / "plain"
    plain.mkdir()
    with pytest.raises(NotInGitRepositoryError):
        GitRepository.open(plain)


def test_find_from_root_and_subdirectory(repo, monkeypatch):
    monkeypatch.chdir(repo)
    assert GitRepository.find().root_path.resolve() == repo.resolve()

    sub = repo / "subdir"
    sub.mkdir()
    monkeypatch.chdir(sub)
    assert GitRepository.find().root_path.resolve() == repo.resolve()


def test_find_outside_repository_fails(isolated, monkeypatch):
    plain = isolated / "plain"
    plain.mkdir()
    monkeypatch.chdir(plain)
    with pytest.raises(NotInGitRepositoryError):
        GitRepository.find()


def test_list_worktrees_single(repo, monkeypatch):
    monkeypatch.chdir(repo)
    worktrees = GitRepository.find().list_worktrees()
    assert len(worktrees) == 1
    assert worktrees[0].branch == "main"
    assert worktrees[0].path.resolve() == repo.resolve()
    assert worktrees[0].is_primary
    assert worktrees[0].is_current
    assert not worktrees[0].is_detached


def test_list_worktrees_marks_main_primary_and_linked_current(repo, monkeypatch):
    repo_path = repo.resolve()
    linked = repo_path / "worktrees" / "feature-current"
    monkeypatch.chdir(repo_path)
    GitRepository.find().create_worktree_and_branch("feature-current", linked, None)

    monkeypatch.chdir(linked)
    worktrees = GitRepository.find().list_worktrees()
    main = next(w for w in worktrees if w.path.resolve() == repo_path)
    other = next(w for w in worktrees if w.path.resolve() == linked)
    assert main.is_primary and not main.is_current
    assert not other.is_primary and other.is_current


def test_cleanup_analysis_excludes_protected_branches(repo, monkeypatch):
    monkeypatch.chdir(repo)
    repository = GitRepository.find()
    git(repo, "branch", "develop")
    repository.create_worktree_and_branch("develop", repo / "worktrees" / "develop", "develop")

    statuses = repository.analyze_branches_for_cleanup(repository.list_worktrees())
    branches = [s.branch for s in statuses]
    assert "main" not in branches
    assert "develop" not in branches


def test_cleanup_analysis_excludes_custom_protected_branches(repo, monkeypatch):
    monkeypatch.chdir(repo)
    repository = GitRepository.find()
    git(repo, "branch", "staging")
    repository.create_worktree_and_branch("staging", repo / "worktrees" / "staging", "staging")
    repository.create_worktree_and_branch("feature", repo / "worktrees" / "feature", None)

    statuses = repository.analyze_branches_for_cleanup(
        repository.list_worktrees(), protected_branches=["staging"]
    )
    branches = [s.branch for s in statuses]
    assert "staging" not in branches
    assert "feature" in branches


def test_create_worktree_and_branch(repo, monkeypatch):
    monkeypatch.chdir(repo)
    repository = GitRepository.find()
    path = repo / "worktrees" / "feature-branch"
    repository.create_worktree_and_branch("feature-branch", path, None)

    assert path.exists()
    assert (path / ".git").exists()
    worktrees = repository.list_worktrees()
    assert len(worktrees) == 2
    feature = next(w for w in worktrees if w.branch == "feature-branch")
    assert feature.path.resolve() == path.resolve()


def test_create_worktree_fails_for_bad_start_point(repo, monkeypatch):
    monkeypatch.chdir(repo)
    repository = GitRepository.find()
    with pytest.raises(CommandError):
        repository.create_worktree_and_branch(
            "bad", repo / "worktrees" / "bad", "no-such-commit"
        )


def test_remove_worktree(repo, monkeypatch):
    monkeypatch.chdir(repo)
    repository = GitRepository.find()
    path = repo / "worktrees" / "temp-branch"
    repository.create_worktree_and_branch("temp-branch", path, None)
    assert path.exists()

    repository.remove_worktree(path)
    assert not path.exists()
    assert all(w.branch != "temp-branch" for w in repository.list_worktrees())


def test_fetch_branches_without_remotes(repo, monkeypatch):
    monkeypatch.chdir(repo)
    assert GitRepository.find().fetch_branches() is True


def test_analyze_branches_for_cleanup(repo, monkeypatch):
    monkeypatch.chdir(repo)
    repository = GitRepository.find()
    git(repo, "checkout", "-b", "feature-1")
    git(repo, "checkout", "-b", "feature-2")
    git(repo, "checkout", "main")
    repository.create_worktree_and_branch("feature-1", repo / "worktrees" / "feature-1", "feature-1")
    repository.create_worktree_and_branch("feature-2", repo / "worktrees" / "feature-2", "feature-2")

    worktrees = [w for w in repository.list_worktrees() if w.branch != "main"]
    statuses = repository.analyze_branches_for_cleanup(worktrees)
    assert len(statuses) == 2
    for status in statuses:
        assert status.branch in ("feature-1", "feature-2")
        assert not status.has_uncommitted_changes
        assert not status.has_remote


def test_cleanup_analysis_uses_primary_branch_when_default_is_not_main(isolated, monkeypatch):
    repo = make_repo(isolated / "trunk-repo", "trunk")
    monkeypatch.chdir(repo)
    repository = GitRepository.find()
    git(repo, "branch", "feature-done")
    repository.create_worktree_and_branch(
        "feature-done", repo / "worktrees" / "feature-done", "feature-done"
    )

    statuses = repository.analyze_branches_for_cleanup(repository.list_worktrees())
    feature = next(s for s in statuses if s.branch == "feature-done")
    assert feature.is_merged
    assert feature.is_identical


def test_cleanup_base_branch_falls_back_to_configured(repo):
    repository = GitRepository.open(repo)
    assert repository.cleanup_base_branch([], " develop ") == "develop"
    primary = WorktreeInfo(path=repo, branch="trunk", is_primary=True)
    assert repository.cleanup_base_branch([primary], "develop") == "trunk"


def test_delete_branch(repo, monkeypatch):
    monkeypatch.chdir(repo)
    repository = GitRepository.find()
    git(repo, "checkout", "-b", "test-branch")
    git(repo, "checkout", "main")

    repository.delete_branch("test-branch", True)
    assert git(repo, "branch", "--list", "test-branch").stdout == b""
    assert not repository.branch_exists("test-branch")


def test_delete_missing_branch_fails(repo):
    with pytest.raises(CommandError):
        GitRepository.open(repo).delete_branch("missing", False)


def test_uncommitted_changes_detection(repo, monkeypatch):
    monkeypatch.chdir(repo)
    repository = GitRepository.find()
    assert not repository.has_uncommitted_changes(repo)

    (repo / "new_file.txt").write_text("New content")
    assert repository.has_uncommitted_changes(repo)

    git(repo, "add", ".")
    assert repository.has_uncommitted_changes(repo)

    git(repo, "commit", "-m", "Add new file")
    assert not repository.has_uncommitted_changes(repo)


def test_branch_merge_detection(repo, monkeypatch):
    monkeypatch.chdir(repo)
    git(repo, "checkout", "-b", "feature")
    (repo / "feature.txt").write_text("Feature content")
    git(repo, "add", ".")
    git(repo, "commit", "-m", "Add feature")
    git(repo, "checkout", "main")
    git(repo, "merge", "feature")

    repository = GitRepository.find()
    assert repository.is_branch_merged("feature", "main")

    git(repo, "checkout", "-b", "unmerged")
    (repo / "unmerged.txt").write_text("Unmerged content")
    git(repo, "add", ".")
    git(repo, "commit", "-m", "Add unmerged feature")
    git(repo, "checkout", "main")
    assert not repository.is_branch_merged("unmerged", "main")


def test_branch_listing_and_head(repo):
    repository = GitRepository.open(repo)
    git(repo, "branch", "feat-b")
    git(repo, "branch", "feat-a")
    git(repo, "branch", "other")
    assert repository.list_local_branches_matching_prefix("feat") == ["feat-a", "feat-b"]
    head = git(repo, "rev-parse", "HEAD").stdout.decode().strip()
    assert repository.get_head_commit() == head
    assert repository.get_main_branch() == "main"


def test_worktree_path_generation(repo, monkeypatch):
    monkeypatch.chdir(repo)
    path = GitRepository.find().get_worktree_path("feature/awesome-feature")
    assert path.name == "feature-awesome-feature"
    assert path.parent.name == "worktrees"


def test_worktree_path_generation_with_relative_base(repo, monkeypatch):
    monkeypatch.chdir(repo)
    path = GitRepository.find().get_worktree_path(
        "feature/with-custom-base", Path(".worktrees")
    )
    assert path.parts[-2:] == (".worktrees", "feature-with-custom-base")


def test_worktree_path_with_absolute_base(repo, isolated):
    base = isolated / "elsewhere"
    path = GitRepository.open(repo).get_worktree_path("/a/b/", base)
    assert path == base / "a-b"


def test_relative_worktrees_path_uses_primary_root_from_linked_worktree(repo, monkeypatch):
    repo_path = repo.resolve()
    linked = repo_path / ".worktrees" / "feature-current"
    monkeypatch.chdir(repo_path)
    GitRepository.find().create_worktree_and_branch("feature-current", linked, None)

    monkeypatch.chdir(linked)
    path = GitRepository.find().get_worktree_path("feature/from-linked", Path(".worktrees"))
    assert path.resolve() == repo_path / ".worktrees" / "feature-from-linked"