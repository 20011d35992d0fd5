"""Run controller: drives every configured repository through the orchestrator.

Repositories are processed strictly in configuration order. A repository that
fails is recorded and the next one starts from the already-cleaned working
copy; the run as a whole passes only if every repository passed.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

import click

from combine_prs.cli.config_schema import CombineConfig
from combine_prs.cli.output import user_output
from combine_prs.core.context import CombineContext
from combine_prs.core.errors import CombineError, CombineRunError
from combine_prs.core.metadata import METADATA_FILENAME, MetadataAggregator
from combine_prs.core.orchestrator import process_repository

logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    """Outcome of a run, per repository."""

    merged: dict[str, list[int]] = field(default_factory=dict)
    failures: dict[str, CombineError] = field(default_factory=dict)
    metadata_path: Path | None = None

    @property
    def succeeded(self) -> bool:
        return not self.failures

    def raise_for_failures(self) -> None:
        if self.failures:
            raise CombineRunError(self.failures)


def run_url_from_env(environ: Mapping[str, str]) -> str | None:
    """URL of the current GitHub Actions run, when running under Actions."""
    server = environ.get("GITHUB_SERVER_URL")
    repository = environ.get("GITHUB_REPOSITORY")
    run_id = environ.get("GITHUB_RUN_ID")
    if not (server and repository and run_id):
        return None
    return f"{server}/{repository}/actions/runs/{run_id}"


def metadata_path_for(ctx: CombineContext, config: CombineConfig) -> Path:
    base = config.path if config.metadata_in_working_copy else ctx.cwd
    return base / METADATA_FILENAME


async def combine(
    ctx: CombineContext, config: CombineConfig, *, environ: Mapping[str, str] | None = None
) -> RunReport:
    """Merge the labeled PRs of every configured repository into the working copy.

    Args:
        ctx: Dependencies for git and GitHub access
        config: Run configuration
        environ: Environment used to derive the run URL (defaults to os.environ)

    Returns:
        RunReport describing merged PRs and per-repository failures

    Raises:
        CombineError: If setup before the repository loop fails, or the
            metadata file cannot be produced
    """
    environ = os.environ if environ is None else environ
    cwd = config.path
    report = RunReport()

    if not config.skip_identity:
        await ctx.git.set_identity(cwd, config.identity_name, config.identity_email)

    aggregator: MetadataAggregator | None = None
    if config.generate_metadata:
        aggregator = MetadataAggregator(concurrency=config.api_concurrency)
        aggregator.capture_base(
            run_url=run_url_from_env(environ),
            base_ref=await ctx.git.current_ref(cwd),
            base_commit_sha=await ctx.git.head_sha(cwd),
        )

    for target in config.repositories:
        merged: list[int] = []
        try:
            await process_repository(ctx, config, target, aggregator, merged)
        except CombineError as e:
            logger.debug("Repository %s failed", target.full_name, exc_info=True)
            user_output(click.style(f"{target.full_name} failed: ", fg="red") + str(e))
            report.failures[target.full_name] = e
            # PRs merged before the failure remain in the working copy
            if merged:
                report.merged[target.full_name] = merged
        else:
            report.merged[target.full_name] = merged

    if aggregator is not None:
        report.metadata_path = aggregator.write(metadata_path_for(ctx, config))
        if report.metadata_path is not None:
            user_output(f"Build metadata written to {report.metadata_path}")

    return report
