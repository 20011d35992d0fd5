"""Diagnosis and cleanup after a failed merge.

report_conflict never returns. It prints what a human needs to resolve the
conflict (conflicted paths, a diff per path, the raw merge output), restores
the working copy to a clean state, and raises MergeConflictError.
"""

import logging
from pathlib import Path
from typing import NoReturn

import click

from combine_prs.cli.output import user_output
from combine_prs.core.errors import CombineError, MergeConflictError
from combine_prs.core.git.abc import Git, parse_conflicted_paths
from combine_prs.core.types import CommandResult, PullRequestRef

logger = logging.getLogger(__name__)


async def report_conflict(
    git: Git, pr: PullRequestRef, merge_result: CommandResult, cwd: Path
) -> NoReturn:
    """Report a failed merge of pr and reset the working copy.

    Args:
        git: Git implementation operating on cwd
        pr: The PR whose merge failed
        merge_result: Result of the failed merge command
        cwd: Working copy

    Raises:
        MergeConflictError: Always, after the working copy has been cleaned
    """
    repository = f"{pr.owner}/{pr.repo}"
    conflicted: list[str] = []

    try:
        try:
            conflicted = parse_conflicted_paths(await git.status_porcelain(cwd))
        except CombineError as e:
            user_output(f"Warning: could not query status after failed merge: {e}")

        user_output(
            click.style(f"Merge of PR #{pr.number} ({pr.head_branch}) into {repository} failed", fg="red")
        )
        if conflicted:
            user_output(f"Conflicted files ({len(conflicted)}):")
            for path in conflicted:
                user_output(f"  {path}")

        for path in conflicted:
            await _show_diff(git, cwd, path)

        user_output("git merge output:")
        user_output(merge_result.stdout.rstrip())
        if merge_result.stderr.strip():
            user_output("git merge errors:")
            user_output(merge_result.stderr.rstrip())
    finally:
        # The next repository (or a rerun of the job) must start from a clean tree
        await git.reset_hard(cwd)
        await git.clean_untracked(cwd)
        logger.debug("Working copy %s reset after failed merge of PR #%d", cwd, pr.number)

    raise MergeConflictError(repository=repository, pr_number=pr.number, conflicted_files=conflicted)


async def _show_diff(git: Git, cwd: Path, path: str) -> None:
    """Print the diff for one conflicted path; failures are reported and skipped."""
    try:
        result = await git.diff_path(cwd, path)
    except CombineError as e:
        user_output(f"Warning: could not diff {path}: {e}")
        return

    if not result.ok:
        user_output(f"Warning: could not diff {path}: {result.describe()}")
        return

    user_output(click.style(f"--- diff of {path} ---", bold=True))
    user_output(result.stdout.rstrip())
