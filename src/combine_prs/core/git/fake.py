"""Fake Git operations for testing.

FakeGit is an in-memory implementation that accepts pre-configured state
in its constructor. Construct instances directly with keyword arguments.
"""

from pathlib import Path

from combine_prs.core.git.abc import Git
from combine_prs.core.types import CommandResult


class FakeGit(Git):
    """In-memory fake implementation of git operations.

    This class has NO public setup methods. All state is provided via constructor
    using keyword arguments with sensible defaults.
    """

    def __init__(
        self,
        *,
        head_sha: str = "0" * 40,
        current_ref: str | None = "main",
        merge_results: dict[str, CommandResult] | None = None,
        conflict_status: dict[str, str] | None = None,
        diffs: dict[str, CommandResult] | None = None,
    ) -> None:
        """Create FakeGit with pre-configured state.

        Args:
            head_sha: SHA reported by head_sha()
            current_ref: Branch reported by current_ref() (None for detached)
            merge_results: Mapping of ref -> result of merging it; unlisted refs
                merge cleanly
            conflict_status: Mapping of ref -> porcelain status left behind after
                its merge fails
            diffs: Mapping of path -> result of diff_path()
        """
        self._head_sha = head_sha
        self._current_ref = current_ref
        self._merge_results = merge_results or {}
        self._conflict_status = conflict_status or {}
        self._diffs = diffs or {}
        self._status = ""
        self._identity: tuple[str, str] | None = None
        self._remote_urls: list[tuple[str, str]] = []
        self._fetches: list[str] = []
        self._fetched_refs: list[str] = []
        self._merged: list[str] = []
        self._merge_messages: list[str] = []
        self._reset_count = 0
        self._clean_count = 0
        self._operations: list[str] = []

    @property
    def identity(self) -> tuple[str, str] | None:
        """(name, email) passed to set_identity(), if it was called."""
        return self._identity

    @property
    def remote_urls(self) -> list[tuple[str, str]]:
        """(remote, url) pairs passed to configure_remote(), in order."""
        return self._remote_urls

    @property
    def fetches(self) -> list[str]:
        return self._fetches

    @property
    def fetched_refs(self) -> list[str]:
        return self._fetched_refs

    @property
    def merged(self) -> list[str]:
        """Refs that merged successfully, in order."""
        return self._merged

    @property
    def merge_messages(self) -> list[str]:
        return self._merge_messages

    @property
    def reset_count(self) -> int:
        return self._reset_count

    @property
    def clean_count(self) -> int:
        return self._clean_count

    @property
    def operations(self) -> list[str]:
        """Every mutating operation as a short label, for ordering assertions."""
        return self._operations

    @property
    def status(self) -> str:
        """Current porcelain status of the simulated working copy."""
        return self._status

    async def set_identity(self, cwd: Path, name: str, email: str) -> None:
        self._identity = (name, email)
        self._operations.append("identity")

    async def configure_remote(self, cwd: Path, remote: str, url: str, *, secret: str | None) -> None:
        self._remote_urls.append((remote, url))
        self._operations.append(f"remote {remote}")

    async def fetch(self, cwd: Path, remote: str) -> None:
        self._fetches.append(remote)
        self._operations.append(f"fetch {remote}")

    async def fetch_ref(self, cwd: Path, remote: str, refspec: str) -> None:
        self._fetched_refs.append(refspec)
        self._operations.append(f"fetch {refspec}")

    async def merge(self, cwd: Path, ref: str, message: str) -> CommandResult:
        self._operations.append(f"merge {ref}")
        self._merge_messages.append(message)
        result = self._merge_results.get(ref)
        if result is not None and not result.ok:
            self._status = self._conflict_status.get(ref, "")
            return result

        self._merged.append(ref)
        return CommandResult(
            args=("git", "merge", ref), returncode=0, stdout="Merge made by the 'ort' strategy.\n", stderr=""
        )

    async def status_porcelain(self, cwd: Path) -> str:
        return self._status

    async def diff_path(self, cwd: Path, path: str) -> CommandResult:
        return self._diffs.get(
            path, CommandResult(args=("git", "diff", "--", path), returncode=0, stdout="", stderr="")
        )

    async def reset_hard(self, cwd: Path) -> None:
        self._reset_count += 1
        self._operations.append("reset")
        # Only untracked entries survive a hard reset
        self._status = "\n".join(line for line in self._status.splitlines() if line.startswith("??"))

    async def clean_untracked(self, cwd: Path) -> None:
        self._clean_count += 1
        self._operations.append("clean")
        self._status = "\n".join(line for line in self._status.splitlines() if not line.startswith("??"))

    async def head_sha(self, cwd: Path) -> str:
        return self._head_sha

    async def current_ref(self, cwd: Path) -> str | None:
        return self._current_ref
