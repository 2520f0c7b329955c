"""Test configuration for runledger-report.

Provides a real temporary git repository, since worktree resolution and
commit identity are read from git itself.
"""

from pathlib import Path

import git
import pytest

from runledger_report.worktree import GitWorktree


@pytest.fixture
def repo_dir(tmp_path: Path) -> Path:
    """Create a git repository with one commit."""
    root = tmp_path / "repo"
    root.mkdir()
    repo = git.Repo.init(root)
    (root / "README.md").write_text("demo\n", encoding="utf-8")
    repo.index.add(["README.md"])
    actor = git.Actor("Test User", "test@example.com")
    repo.index.commit("Initial commit", author=actor, committer=actor)
    repo.close()
    return root


@pytest.fixture
def worktree(repo_dir: Path) -> GitWorktree:
    """Open the temporary repository as a worktree."""
    return GitWorktree.create(repo_dir)


@pytest.fixture
def no_repo_dir(tmp_path: Path) -> Path:
    """Create a directory outside any git repository."""
    path = tmp_path / "plain"
    path.mkdir()
    return path
