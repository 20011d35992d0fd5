import asyncio
import logging
import os
from pathlib import Path
from typing import Any

import click
from rich.console import Console

from combine_prs.cli.config import build_config, load_config_file, parse_repositories_json
from combine_prs.cli.output import format_run_summary, report_failure
from combine_prs.core.context import CombineContext, create_context
from combine_prs.core.errors import CombineError
from combine_prs.core.runner import combine

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags


def _configure_logging(verbose: bool) -> None:
    if verbose or os.getenv("COMBINE_PRS_DEBUG"):
        logging.basicConfig(level=logging.DEBUG, format="[DEBUG %(name)s:%(lineno)d] %(message)s")


@click.command("combine-prs", context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="combine-prs")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="COMBINE_PRS_CONFIG",
    help="TOML file with run settings and [[repositories]] tables.",
)
@click.option(
    "--repositories",
    envvar="INPUT_REPOSITORIES",
    help='JSON list of {"owner", "repo", "labels", "token"} objects. Overrides the config file.',
)
@click.option(
    "--path",
    envvar="INPUT_PATH",
    help="Working copy the PRs are merged into.",
)
@click.option(
    "--generate-metadata/--no-generate-metadata",
    default=None,
    envvar="INPUT_GENERATE_METADATA",
    help="Write build-metadata.json describing what was merged.",
)
@click.option(
    "--metadata-in-working-copy/--metadata-in-cwd",
    default=None,
    envvar="INPUT_METADATA_IN_WORKING_COPY",
    help="Write the metadata file inside the working copy instead of the current directory.",
)
@click.option(
    "--skip-identity/--configure-identity",
    default=None,
    envvar="INPUT_SKIP_IDENTITY",
    help="Leave git user.name/user.email untouched.",
)
@click.option(
    "--retries",
    envvar="INPUT_RETRIES",
    help="Attempts for git commands other than fetch (1-100).",
)
@click.option(
    "--fetch-retries",
    envvar="INPUT_FETCH_RETRIES",
    help="Attempts for git fetch (1-100).",
)
@click.option(
    "--discovery",
    type=click.Choice(["search", "list"]),
    default=None,
    envvar="INPUT_DISCOVERY",
    help="Find PRs via the search API or by listing all open PRs.",
)
@click.option("--host", default=None, envvar="INPUT_HOST", help="GitHub host (default github.com).")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging.")
@click.pass_obj
def cli(
    obj: CombineContext | None,
    config_path: Path | None,
    repositories: str | None,
    path: str | None,
    generate_metadata: bool | None,
    metadata_in_working_copy: bool | None,
    skip_identity: bool | None,
    retries: str | None,
    fetch_retries: str | None,
    discovery: str | None,
    host: str | None,
    verbose: bool,
) -> None:
    """Merge labeled pull requests into one working copy for a combined build."""
    _configure_logging(verbose)
    cwd = Path.cwd()

    try:
        data: dict[str, Any] = load_config_file(config_path) if config_path is not None else {}
        if repositories:
            data["repositories"] = parse_repositories_json(repositories)
        overrides = {
            "path": path or None,
            "generate_metadata": generate_metadata,
            "metadata_in_working_copy": metadata_in_working_copy,
            "skip_identity": skip_identity,
            "retries": retries,
            "fetch_retries": fetch_retries,
            "discovery": discovery,
            "host": host,
        }
        data.update({key: value for key, value in overrides.items() if value is not None})
        config = build_config(data, base_dir=cwd)

        # Tests provide the context through CliRunner.invoke(obj=...)
        ctx = obj if obj is not None else create_context(config, cwd)
        report = asyncio.run(combine(ctx, config))
    except CombineError as e:
        report_failure(str(e))
        raise SystemExit(1) from e

    Console(stderr=True).print(format_run_summary(report))
    try:
        report.raise_for_failures()
    except CombineError as e:
        report_failure(str(e))
        raise SystemExit(1) from e


def main() -> None:
    """CLI entry point used by the `combine-prs` console script."""
    cli()
