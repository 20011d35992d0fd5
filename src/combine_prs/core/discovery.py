"""Pull request discovery.

Finds the open PRs of a repository that carry every configured label and
returns them in ascending PR-number order, the order they are merged in.
"""

import asyncio
import logging

from combine_prs.cli.output import user_output
from combine_prs.core.errors import DiscoveryError, GitHubApiError
from combine_prs.core.github.abc import GitHub
from combine_prs.core.github.parsing import has_all_labels
from combine_prs.core.types import DiscoveryMode, PullRequestRef, RepositoryTarget

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 8


async def discover(
    github: GitHub,
    target: RepositoryTarget,
    *,
    mode: DiscoveryMode = "search",
    concurrency: int = DEFAULT_CONCURRENCY,
) -> list[PullRequestRef]:
    """Discover labeled open PRs for target, sorted by number.

    A repository without labels yields no PRs; merging every open PR is never
    implied by an empty filter.

    Args:
        github: GitHub API implementation
        target: Repository and label filter
        mode: "search" queries the search API and fetches each match's detail
            concurrently; "list" pages through all open PRs and filters them
            locally
        concurrency: Maximum PR detail fetches in flight at once

    Raises:
        DiscoveryError: If the search or list call itself fails
    """
    if not target.labels:
        user_output(
            f"Warning: {target.full_name} has no labels configured; "
            "no pull requests will be merged for it"
        )
        return []

    if mode == "list":
        prs = await _discover_by_listing(github, target)
    else:
        prs = await _discover_by_search(github, target, concurrency)

    prs.sort(key=lambda pr: pr.number)
    logger.debug("Discovered PRs for %s: %s", target.full_name, [pr.number for pr in prs])
    return prs


async def _discover_by_search(
    github: GitHub, target: RepositoryTarget, concurrency: int
) -> list[PullRequestRef]:
    try:
        numbers = await github.search_pull_request_numbers(target, target.labels)
    except GitHubApiError as e:
        raise DiscoveryError(f"Pull request discovery failed for {target.full_name}: {e}") from e

    user_output(f"Found {len(numbers)} open PR(s) in {target.full_name} with required labels")

    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def fetch(number: int) -> PullRequestRef | None:
        async with semaphore:
            try:
                return await github.get_pull_request(target, number)
            except GitHubApiError as e:
                user_output(f"Warning: skipping PR #{number} of {target.full_name}: {e}")
                return None

    # Completion order is irrelevant; discover() sorts afterwards
    results = await asyncio.gather(*(fetch(number) for number in numbers))
    return [pr for pr in results if pr is not None]


async def _discover_by_listing(github: GitHub, target: RepositoryTarget) -> list[PullRequestRef]:
    try:
        open_prs = await github.list_open_pull_requests(target)
    except GitHubApiError as e:
        raise DiscoveryError(f"Pull request discovery failed for {target.full_name}: {e}") from e

    user_output(f"Found {len(open_prs)} open PR(s) in {target.full_name}")
    matching = [pr for pr in open_prs if has_all_labels(pr, target.labels)]
    user_output(f"Found {len(matching)} open PR(s) in {target.full_name} with required labels")
    return matching
