"""High-level git operations interface.

This module provides a clean abstraction over the git commands the merge
engine needs, making the orchestrator testable without a real repository.

Architecture:
- Git: Abstract base class defining the interface
- RealGit: Production implementation driving git through a CommandRunner
- FakeGit: In-memory implementation for tests
"""

from abc import ABC, abstractmethod
from pathlib import Path

from combine_prs.core.types import CommandResult

# Porcelain v1 XY codes for unresolved three-way conflicts:
# both modified, both added, both deleted
CONFLICT_STATUS_CODES = frozenset({"UU", "AA", "DD"})


def parse_conflicted_paths(porcelain: str) -> list[str]:
    """Extract conflicted paths from `git status --porcelain=v1` output.

    Args:
        porcelain: Raw status output, one "XY path" entry per line

    Returns:
        Paths whose status marks an unresolved conflict, in status order
    """
    paths: list[str] = []
    for line in porcelain.splitlines():
        if len(line) < 4:
            continue
        if line[:2] in CONFLICT_STATUS_CODES:
            path = line[3:]
            # Paths with special characters are quoted by git
            if path.startswith('"') and path.endswith('"'):
                path = path[1:-1]
            paths.append(path)
    return paths


class Git(ABC):
    """Abstract interface for git operations.

    All implementations (real and fake) must implement this interface.
    This interface contains ONLY runtime operations - no test setup methods.
    """

    @abstractmethod
    async def set_identity(self, cwd: Path, name: str, email: str) -> None:
        """Configure the committer identity used for merge commits."""
        ...

    @abstractmethod
    async def configure_remote(self, cwd: Path, remote: str, url: str, *, secret: str | None) -> None:
        """Point a remote at url, adding the remote if it does not exist.

        Args:
            cwd: Working copy
            remote: Remote name (e.g., 'origin')
            url: Remote URL, possibly embedding a credential
            secret: Credential embedded in url, masked from all later output
        """
        ...

    @abstractmethod
    async def fetch(self, cwd: Path, remote: str) -> None:
        """Fetch from a remote to refresh remote-tracking state (retried)."""
        ...

    @abstractmethod
    async def fetch_ref(self, cwd: Path, remote: str, refspec: str) -> None:
        """Fetch a single refspec from a remote (retried)."""
        ...

    @abstractmethod
    async def merge(self, cwd: Path, ref: str, message: str) -> CommandResult:
        """Merge ref into the current checkout with a merge commit.

        Never retried and never raises on a failed merge: the caller inspects
        the returned CommandResult.
        """
        ...

    @abstractmethod
    async def status_porcelain(self, cwd: Path) -> str:
        """Return `git status --porcelain=v1` output."""
        ...

    @abstractmethod
    async def diff_path(self, cwd: Path, path: str) -> CommandResult:
        """Diff the working-tree content of path against the index."""
        ...

    @abstractmethod
    async def reset_hard(self, cwd: Path) -> None:
        """Discard all uncommitted changes, including an in-progress merge."""
        ...

    @abstractmethod
    async def clean_untracked(self, cwd: Path) -> None:
        """Remove untracked files and directories."""
        ...

    @abstractmethod
    async def head_sha(self, cwd: Path) -> str:
        """Commit SHA of HEAD."""
        ...

    @abstractmethod
    async def current_ref(self, cwd: Path) -> str | None:
        """Name of the checked-out branch, or None when HEAD is detached."""
        ...
