"""Pytest configuration and shared fixtures."""

import subprocess
from pathlib import Path

import pytest

from combine_prs.core.types import PullRequestRef


def run_git(cwd: Path, *args: str) -> str:
    """Run git in cwd for test setup and return stripped stdout."""
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout.strip()


def init_repo(path: Path) -> Path:
    """Create a git repository with a configured identity and one commit."""
    path.mkdir(parents=True, exist_ok=True)
    run_git(path, "init", "-b", "main")
    run_git(path, "config", "user.email", "test@example.com")
    run_git(path, "config", "user.name", "Test User")
    (path / "README.md").write_text("# Test Repository\n", encoding="utf-8")
    run_git(path, "add", "README.md")
    run_git(path, "commit", "-m", "Initial commit")
    return path


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """A fresh git repository on branch main with one commit."""
    return init_repo(tmp_path / "repo")


def make_pr(
    number: int,
    *,
    owner: str = "acme",
    repo: str = "service",
    labels: tuple[str, ...] = ("merge-to:indev",),
    head_branch: str | None = None,
    head_sha: str | None = None,
) -> PullRequestRef:
    """Build a PullRequestRef with predictable defaults."""
    return PullRequestRef(
        owner=owner,
        repo=repo,
        number=number,
        head_branch=head_branch or f"feature-{number}",
        head_sha=head_sha or f"{number:040d}",
        author=f"dev{number}",
        title=f"Feature {number}",
        labels=labels,
    )
