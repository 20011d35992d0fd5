"""Production implementation of GitHub operations using `gh api`."""

import logging
from pathlib import Path

from combine_prs.cli.output import mask_secrets
from combine_prs.core.command.abc import CommandRunner
from combine_prs.core.errors import GitHubApiError
from combine_prs.core.github.abc import GitHub
from combine_prs.core.github.parsing import (
    build_search_query,
    parse_commit,
    parse_json_lines,
    parse_json_object,
    parse_pull_request,
    parse_pull_request_numbers,
)
from combine_prs.core.types import CommitInfo, PullRequestRef, RepositoryTarget

logger = logging.getLogger(__name__)

PAGE_SIZE = "100"


class RealGitHub(GitHub):
    """Production implementation using the gh CLI.

    gh handles pagination (--paginate) and authentication. Each repository's
    own credential is passed as GH_TOKEN so one run can span repositories with
    different owners; without a credential gh falls back to its own login.
    """

    def __init__(self, runner: CommandRunner, cwd: Path, *, host: str = "github.com") -> None:
        self._runner = runner
        self._cwd = cwd
        self._host = host

    async def _api(self, target: RepositoryTarget, args: list[str], operation_context: str) -> str:
        cmd = ["gh", "api", "--hostname", self._host, *args]
        env = {"GH_TOKEN": target.credential} if target.credential else None
        logger.debug("$ %s", " ".join(cmd))

        result = await self._runner.run(cmd, self._cwd, env=env)
        if not result.ok:
            secrets = [target.credential] if target.credential else []
            detail = mask_secrets(result.stderr.strip() or result.stdout.strip(), secrets)
            raise GitHubApiError(
                f"Failed to {operation_context} for {target.full_name}: "
                f"gh exited with {result.returncode}" + (f": {detail}" if detail else "")
            )
        return result.stdout

    async def search_pull_request_numbers(
        self, target: RepositoryTarget, labels: frozenset[str]
    ) -> list[int]:
        query = build_search_query(target.owner, target.name, labels)
        logger.debug("Searching pull requests with query: %s", query)
        stdout = await self._api(
            target,
            [
                "--method",
                "GET",
                "--paginate",
                "search/issues",
                "-f",
                f"q={query}",
                "-f",
                f"per_page={PAGE_SIZE}",
                "--jq",
                ".items[].number",
            ],
            "search pull requests",
        )
        return parse_pull_request_numbers(target.owner, target.name, stdout)

    async def list_open_pull_requests(self, target: RepositoryTarget) -> list[PullRequestRef]:
        stdout = await self._api(
            target,
            [
                "--paginate",
                f"repos/{target.owner}/{target.name}/pulls?state=open&per_page={PAGE_SIZE}",
                "--jq",
                ".[]",
            ],
            "list open pull requests",
        )
        return [
            parse_pull_request(target.owner, target.name, item) for item in parse_json_lines(stdout)
        ]

    async def get_pull_request(self, target: RepositoryTarget, number: int) -> PullRequestRef:
        stdout = await self._api(
            target,
            [f"repos/{target.owner}/{target.name}/pulls/{number}"],
            f"fetch PR #{number}",
        )
        return parse_pull_request(target.owner, target.name, parse_json_object(stdout))

    async def get_commit(self, target: RepositoryTarget, sha: str) -> CommitInfo:
        stdout = await self._api(
            target,
            [f"repos/{target.owner}/{target.name}/commits/{sha}"],
            f"fetch commit {sha}",
        )
        return parse_commit(parse_json_object(stdout))
