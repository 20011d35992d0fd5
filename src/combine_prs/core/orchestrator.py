"""Per-repository merge state machine.

For one repository:

    ConfigureRemote -> FetchUpstream -> for each PR (ascending number):
        FetchPRBranch -> Merge -> success | conflict
    -> GenerateMetadata (optional) -> Done

PRs are merged one at a time on top of each other, so later PRs see earlier
PRs' changes. A failed merge is reported by report_conflict, which cleans the
working copy back to the last successful merge and raises; the remaining PRs
of that repository are skipped. PRs merged before the failure stay in the
working copy, so they are still reported and recorded in the build metadata.
"""

import logging
from pathlib import Path

from combine_prs.cli.config_schema import CombineConfig
from combine_prs.cli.output import user_output
from combine_prs.core.conflicts import report_conflict
from combine_prs.core.context import CombineContext
from combine_prs.core.discovery import discover
from combine_prs.core.errors import CombineError
from combine_prs.core.metadata import MetadataAggregator
from combine_prs.core.types import PullRequestRef, RepositoryTarget

logger = logging.getLogger(__name__)

REMOTE_NAME = "origin"


def build_remote_url(host: str, target: RepositoryTarget) -> str:
    """HTTPS remote URL for target, embedding its own credential when set."""
    if target.credential:
        return f"https://{target.credential}@{host}/{target.owner}/{target.name}"
    return f"https://{host}/{target.owner}/{target.name}"


def merge_message(pr: PullRequestRef) -> str:
    return f"Merge PR #{pr.number} from {pr.author}/{pr.head_branch}: {pr.title}"


async def process_repository(
    ctx: CombineContext,
    config: CombineConfig,
    target: RepositoryTarget,
    aggregator: MetadataAggregator | None,
    merged: list[int],
) -> None:
    """Discover, fetch and merge every labeled PR of target into the working copy.

    Each PR number is appended to merged as soon as its merge commit exists,
    so a caller sees the merged prefix even when a later PR fails. That prefix
    stays in the working copy and is recorded in the build metadata.

    Args:
        ctx: Dependencies for git and GitHub access
        config: Run configuration (working copy, host, discovery mode)
        target: Repository to process
        aggregator: Metadata aggregator, or None when metadata is disabled
        merged: Receives the numbers of merged PRs, in merge order

    Raises:
        DiscoveryError: If PR discovery fails
        MergeConflictError: If a merge fails (working copy already cleaned)
        RetryExhaustedError: If a fetch or remote update keeps failing
        CommandLaunchError: If git cannot be started
    """
    cwd = config.path
    labels = ", ".join(sorted(target.labels)) or "(none)"
    user_output(f"Repository: {target.full_name}, Labels: {labels}")

    prs = await discover(
        ctx.github, target, mode=config.discovery, concurrency=config.api_concurrency
    )

    await _configure_remote(ctx, cwd, config.host, target)

    merged_prs: list[PullRequestRef] = []
    try:
        for pr in prs:
            await _merge_pull_request(ctx, cwd, pr)
            merged_prs.append(pr)
            merged.append(pr.number)
    except CombineError:
        if aggregator is not None and merged_prs:
            await _record_partial(ctx, target, aggregator, merged_prs)
        raise

    if aggregator is not None:
        await aggregator.accumulate(ctx.github, target, merged_prs)


async def _record_partial(
    ctx: CombineContext,
    target: RepositoryTarget,
    aggregator: MetadataAggregator,
    merged_prs: list[PullRequestRef],
) -> None:
    """Record PRs merged before a failure without masking that failure."""
    try:
        await aggregator.accumulate(ctx.github, target, merged_prs)
    except CombineError as e:
        user_output(
            f"Warning: could not record merged PRs of {target.full_name} in build metadata: {e}"
        )


async def _configure_remote(ctx: CombineContext, cwd: Path, host: str, target: RepositoryTarget) -> None:
    """Point origin at target with target's credential and refresh it."""
    await ctx.git.configure_remote(
        cwd, REMOTE_NAME, build_remote_url(host, target), secret=target.credential
    )
    await ctx.git.fetch(cwd, REMOTE_NAME)


async def _merge_pull_request(ctx: CombineContext, cwd: Path, pr: PullRequestRef) -> None:
    user_output(f"Processing PR #{pr.number} from {pr.author} with branch {pr.head_branch}")

    refspec = f"+pull/{pr.number}/head:{pr.local_branch}"
    await ctx.git.fetch_ref(cwd, REMOTE_NAME, refspec)

    result = await ctx.git.merge(cwd, pr.local_branch, merge_message(pr))
    if not result.ok:
        await report_conflict(ctx.git, pr, result, cwd)

    logger.debug("Merged PR #%d: %s", pr.number, result.stdout.strip())
    user_output(f"Merged PR #{pr.number}")
