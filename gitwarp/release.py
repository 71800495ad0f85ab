"""Release readiness checks for the repository in the current directory."""

import os
import subprocess
import tomllib
from dataclasses import dataclass
from pathlib import Path

from gitwarp.errors import GitWarpError


@dataclass
class ReleaseCheckOptions:
    """What a release check should cover."""

    version: str | None = None
    metadata_only: bool = False


@dataclass(frozen=True)
class ReleaseVersion:
    """A release version as a bare number and as a tag."""

    number: str
    tag: str


@dataclass(frozen=True)
class ReleaseCheck:
    """The result of one metadata check."""

    label: str
    ok: bool
    detail: str


def resolve_version(version: str | None, cargo_version: str) -> ReleaseVersion:
    """The requested version, or the manifest's, with any leading 'v' removed."""
    raw = (version if version is not None else cargo_version).strip()
    number = raw.removeprefix("v")
    if not number:
        raise GitWarpError("release version cannot be empty")
    return ReleaseVersion(number=number, tag=f"v{number}")


def read_package_version(repo_root: str | os.PathLike) -> str:
    """Read package.version from the repository's Cargo.toml."""
    path = Path(repo_root) / "Cargo.toml"
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise GitWarpError(f"failed to read {path}") from exc
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise GitWarpError(f"failed to parse {path}") from exc

    package = data.get("package")
    version = package.get("version") if isinstance(package, dict) else None
    if not isinstance(version, str):
        raise GitWarpError("Cargo.toml is missing package.version")
    return version


def _read_optional(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return ""
    except OSError as exc:
        raise GitWarpError(f"failed to read {path}") from exc


def _display_relative(repo_root: Path, path: Path) -> str:
    try:
        return str(path.relative_to(repo_root))
    except ValueError:
        return str(path)


def _check(label: str, ok: bool, passed: str, failed: str) -> ReleaseCheck:
    return ReleaseCheck(label=label, ok=ok, detail=passed if ok else failed)


def collect_metadata_checks(
    repo_root: str | os.PathLike, expected: ReleaseVersion, cargo_version: str
) -> list[ReleaseCheck]:
    """Check that the manifest, changelog, notes and install files match expected."""
    root = Path(repo_root)
    tag = expected.tag
    changelog = _read_optional(root / "CHANGELOG.md")
    install_doc = _read_optional(root / "docs" / "install.md")
    install_script = _read_optional(root / "install.sh")
    notes_path = root / "docs" / "releases" / f"{tag}.md"
    notes_display = _display_relative(root, notes_path)

    return [
        _check(
            "Cargo.toml",
            cargo_version == expected.number,
            f"package version is {expected.number}",
            f"Cargo.toml package version is {cargo_version}, expected {expected.number}",
        ),
        _check(
            "CHANGELOG.md",
            f"## {tag} " in changelog or f"## {tag}\n" in changelog,
            f"has a {tag} release heading",
            f"CHANGELOG.md is missing a {tag} release heading",
        ),
        _check(
            "release notes",
            notes_path.exists(),
            f"{notes_display} exists",
            f"{notes_display} is missing",
        ),
        _check(
            "docs/install.md",
            f"GIT_WARP_VERSION={tag}" in install_doc,
            f"mentions GIT_WARP_VERSION={tag}",
            f"docs/install.md does not mention GIT_WARP_VERSION={tag}",
        ),
        _check(
            "install.sh",
            f'version="${{GIT_WARP_VERSION:-{tag}}}"' in install_script,
            f"defaults to {tag}",
            f"install.sh default GIT_WARP_VERSION is not {tag}",
        ),
    ]


def _print_metadata_checks(checks: list[ReleaseCheck]) -> None:
    print("Release metadata:")
    for check in checks:
        status = "ok" if check.ok else "missing"
        print(f"- {status}: {check.label} - {check.detail}")


def _run_step(repo_root: Path, label: str, argv: list[str]) -> None:
    print(f"$ {label}")
    try:
        result = subprocess.run(argv, cwd=repo_root, check=False)
    except OSError as exc:
        raise GitWarpError(f"failed to run {label}") from exc
    if result.returncode != 0:
        raise GitWarpError(f"{label} failed with status exit status: {result.returncode}")


def _run_release_commands(repo_root: Path, expected: ReleaseVersion) -> None:
    binary = str(repo_root / "target" / "release" / "warp")
    steps = [
        ("cargo fmt --check", ["cargo", "fmt", "--check"]),
        ("cargo test", ["cargo", "test"]),
        (
            "cargo build --release --bin warp",
            ["cargo", "build", "--release", "--bin", "warp"],
        ),
        ("./target/release/warp --version", [binary, "--version"]),
        ("./target/release/warp --help", [binary, "--help"]),
        ("./target/release/warp switch --help", [binary, "switch", "--help"]),
        ("./target/release/warp cleanup --help", [binary, "cleanup", "--help"]),
        ("./target/release/warp doctor", [binary, "doctor"]),
    ]

    print("Release command checks:")
    for label, argv in steps:
        _run_step(repo_root, label, argv)
    print(f"Release checks passed for {expected.tag}")


def run_release_check(options: ReleaseCheckOptions) -> None:
    """Check release metadata in the current directory, then build and test."""
    try:
        repo_root = Path.cwd()
    except OSError as exc:
        raise GitWarpError("failed to read current directory") from exc

    cargo_version = read_package_version(repo_root)
    expected = resolve_version(options.version, cargo_version)
    checks = collect_metadata_checks(repo_root, expected, cargo_version)

    _print_metadata_checks(checks)

    failures = [check.detail for check in checks if not check.ok]
    if failures:
        raise GitWarpError(
            "Release metadata checks failed:\n- " + "\n- ".join(failures)
        )

    print(f"Release metadata checks passed for {expected.tag}")

    if options.metadata_only:
        return
    _run_release_commands(repo_root, expected)