"""Git worktree resolution.

Every location in a report is stored relative to the repository root so the
document never depends on where the repository was checked out. The
worktree is also the source of the run's commit identity; failing to find
one is the only condition that aborts report generation.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import git

from runledger_core.errors import WorktreeError
from runledger_core.types.common import CommitId

logger = logging.getLogger(__name__)


class GitWorktree:
    """A resolved git working tree.

    Use ``GitWorktree.create()`` to discover the repository enclosing a
    directory.

    Args:
        repo: An opened GitPython repository with a working tree.
    """

    def __init__(self, repo: git.Repo) -> None:
        if repo.working_tree_dir is None:
            raise WorktreeError(f"Repository has no working tree: {repo.git_dir}")
        self._repo = repo
        self._root = Path(repo.working_tree_dir).resolve()
        self._git_paths: dict[str, str] = {}

    @classmethod
    def create(cls, path: str | Path) -> GitWorktree:
        """Open the repository enclosing ``path``.

        Args:
            path: Any directory inside the working tree.

        Returns:
            The resolved worktree.

        Raises:
            WorktreeError: If ``path`` is not inside a git working tree.
        """
        try:
            repo = git.Repo(path, search_parent_directories=True)
        except (git.InvalidGitRepositoryError, git.NoSuchPathError) as exc:
            raise WorktreeError(f"Not a git repository: {path}") from exc
        worktree = cls(repo)
        logger.debug("Resolved git worktree %s", worktree.root)
        return worktree

    def close(self) -> None:
        """Release the persistent git processes held by the repository."""
        self._repo.close()

    def __enter__(self) -> GitWorktree:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def root(self) -> Path:
        """Absolute, symlink-resolved root of the working tree."""
        return self._root

    def head_commit_id(self) -> CommitId:
        """Return the commit checked out at HEAD.

        Raises:
            WorktreeError: If HEAD does not point at a commit yet.
        """
        try:
            return CommitId(self._repo.head.commit.hexsha)
        except ValueError as exc:
            raise WorktreeError(f"Repository at {self._root} has no commits") from exc

    def git_path(self, path: str | Path) -> str:
        """Return ``path`` relative to the worktree root, as a POSIX path.

        Relative input paths are resolved against the current directory
        first. Paths outside the worktree come back with ``..`` segments;
        the result is never absolute.

        Args:
            path: A filesystem path.

        Returns:
            The worktree-relative path.
        """
        key = str(path)
        cached = self._git_paths.get(key)
        if cached is not None:
            return cached

        absolute = Path(path).resolve()
        try:
            relative = absolute.relative_to(self._root).as_posix()
        except ValueError:
            relative = Path(os.path.relpath(absolute, self._root)).as_posix()
        self._git_paths[key] = relative
        return relative
