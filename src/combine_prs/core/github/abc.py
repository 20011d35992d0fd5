"""Abstract base class for GitHub operations."""

from abc import ABC, abstractmethod

from combine_prs.core.types import CommitInfo, PullRequestRef, RepositoryTarget


class GitHub(ABC):
    """Abstract interface for the GitHub REST API surface the engine consumes.

    All implementations (real and fake) must implement this interface.
    Pagination, authentication and rate limiting are the implementation's
    concern; callers always receive fully materialized results.
    """

    @abstractmethod
    async def search_pull_request_numbers(
        self, target: RepositoryTarget, labels: frozenset[str]
    ) -> list[int]:
        """Numbers of open PRs in target carrying every one of labels.

        Raises:
            GitHubApiError: If the search request fails
        """
        ...

    @abstractmethod
    async def list_open_pull_requests(self, target: RepositoryTarget) -> list[PullRequestRef]:
        """Every open PR in target, across all pages.

        Raises:
            GitHubApiError: If listing fails
        """
        ...

    @abstractmethod
    async def get_pull_request(self, target: RepositoryTarget, number: int) -> PullRequestRef:
        """Full detail for one PR, including its head ref and SHA.

        Raises:
            GitHubApiError: If the PR cannot be fetched or parsed
        """
        ...

    @abstractmethod
    async def get_commit(self, target: RepositoryTarget, sha: str) -> CommitInfo:
        """Detail for one commit.

        Raises:
            GitHubApiError: If the commit cannot be fetched or parsed
        """
        ...
