"""Fake GitHub operations for testing.

FakeGitHub is an in-memory implementation that accepts pre-configured state
in its constructor. Construct instances directly with keyword arguments.
"""

import asyncio

from combine_prs.core.errors import GitHubApiError
from combine_prs.core.github.abc import GitHub
from combine_prs.core.github.parsing import has_all_labels
from combine_prs.core.types import CommitInfo, PullRequestRef, RepositoryTarget


class FakeGitHub(GitHub):
    """In-memory fake implementation of GitHub operations.

    This class has NO public setup methods. All state is provided via constructor
    using keyword arguments with sensible defaults (empty collections).
    """

    def __init__(
        self,
        *,
        pull_requests: list[PullRequestRef] | None = None,
        commits: dict[str, CommitInfo] | None = None,
        failing_repositories: frozenset[str] = frozenset(),
        failing_pull_requests: frozenset[int] = frozenset(),
        failing_commits: frozenset[str] = frozenset(),
    ) -> None:
        """Create FakeGitHub with pre-configured state.

        Args:
            pull_requests: Open PRs across all repositories, in the order the
                API would return them
            commits: Mapping of sha -> CommitInfo; unlisted SHAs get a
                synthesized commit
            failing_repositories: Full names whose search/list calls fail
            failing_pull_requests: PR numbers whose detail fetch fails
            failing_commits: SHAs whose commit fetch fails
        """
        self._pull_requests = pull_requests or []
        self._commits = commits or {}
        self._failing_repositories = failing_repositories
        self._failing_pull_requests = failing_pull_requests
        self._failing_commits = failing_commits
        self._search_calls: list[tuple[str, frozenset[str]]] = []
        self._detail_calls: list[int] = []
        self._commit_calls: list[str] = []

    @property
    def search_calls(self) -> list[tuple[str, frozenset[str]]]:
        """(full_name, labels) for each search, for test assertions."""
        return self._search_calls

    @property
    def detail_calls(self) -> list[int]:
        return self._detail_calls

    @property
    def commit_calls(self) -> list[str]:
        return self._commit_calls

    def _open_in(self, target: RepositoryTarget) -> list[PullRequestRef]:
        return [
            pr
            for pr in self._pull_requests
            if pr.owner == target.owner and pr.repo == target.name
        ]

    async def search_pull_request_numbers(
        self, target: RepositoryTarget, labels: frozenset[str]
    ) -> list[int]:
        self._search_calls.append((target.full_name, labels))
        if target.full_name in self._failing_repositories:
            raise GitHubApiError(f"Failed to search pull requests for {target.full_name}")
        return [pr.number for pr in self._open_in(target) if has_all_labels(pr, labels)]

    async def list_open_pull_requests(self, target: RepositoryTarget) -> list[PullRequestRef]:
        if target.full_name in self._failing_repositories:
            raise GitHubApiError(f"Failed to list open pull requests for {target.full_name}")
        return self._open_in(target)

    async def get_pull_request(self, target: RepositoryTarget, number: int) -> PullRequestRef:
        self._detail_calls.append(number)
        # Yield so concurrent fetches interleave as they would against the API
        await asyncio.sleep(0)
        if number in self._failing_pull_requests:
            raise GitHubApiError(f"Failed to fetch PR #{number} for {target.full_name}")
        for pr in self._open_in(target):
            if pr.number == number:
                return pr
        raise GitHubApiError(f"PR #{number} not found in {target.full_name}")

    async def get_commit(self, target: RepositoryTarget, sha: str) -> CommitInfo:
        self._commit_calls.append(sha)
        await asyncio.sleep(0)
        if sha in self._failing_commits:
            raise GitHubApiError(f"Failed to fetch commit {sha} for {target.full_name}")
        if sha in self._commits:
            return self._commits[sha]
        return CommitInfo(
            sha=sha,
            message=f"Commit {sha[:7]}",
            author_name="Test Author",
            author_date="2024-01-01T00:00:00Z",
        )
