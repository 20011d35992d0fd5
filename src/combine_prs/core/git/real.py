"""Production Git implementation.

Executes actual git commands through a CommandRunner. Commands that touch the
network or mutate repository configuration go through run_with_retry; status
queries and the merge itself run exactly once.
"""

import logging
import random
from collections.abc import Callable, Sequence
from pathlib import Path

from combine_prs.cli.output import mask_secrets
from combine_prs.core.command.abc import CommandRunner
from combine_prs.core.errors import CommandFailedError
from combine_prs.core.git.abc import Git
from combine_prs.core.retry import RetryPolicy, run_with_retry
from combine_prs.core.time.abc import Time
from combine_prs.core.types import CommandResult

logger = logging.getLogger(__name__)


class RealGit(Git):
    """Production implementation using the git executable.

    Credentials registered through configure_remote are masked from every
    message this class produces for the rest of the run.
    """

    def __init__(
        self,
        runner: CommandRunner,
        time: Time,
        *,
        command_policy: RetryPolicy,
        fetch_policy: RetryPolicy,
        uniform: Callable[[float, float], float] = random.uniform,
    ) -> None:
        self._runner = runner
        self._time = time
        self._command_policy = command_policy
        self._fetch_policy = fetch_policy
        self._uniform = uniform
        self._secrets: list[str] = []

    async def _retrying(self, cwd: Path, args: Sequence[str], policy: RetryPolicy) -> CommandResult:
        return await run_with_retry(
            self._runner,
            self._time,
            ["git", *args],
            cwd,
            policy,
            secrets=self._secrets,
            uniform=self._uniform,
        )

    async def _checked(self, cwd: Path, args: Sequence[str], operation_context: str) -> CommandResult:
        """Run git once and raise with command details on a non-zero exit."""
        result = await self._runner.run(["git", *args], cwd)
        if result.ok:
            return result

        cmd_str = mask_secrets(" ".join(["git", *args]), self._secrets)
        error_msg = f"Failed to {operation_context}"
        error_msg += f"\nCommand: {cmd_str}"
        error_msg += f"\nExit code: {result.returncode}"
        if result.stdout.strip():
            error_msg += f"\nstdout: {mask_secrets(result.stdout.strip(), self._secrets)}"
        if result.stderr.strip():
            error_msg += f"\nstderr: {mask_secrets(result.stderr.strip(), self._secrets)}"
        raise CommandFailedError(
            error_msg, returncode=result.returncode, stdout=result.stdout, stderr=result.stderr
        )

    async def set_identity(self, cwd: Path, name: str, email: str) -> None:
        await self._retrying(cwd, ["config", "user.name", name], self._command_policy)
        await self._retrying(cwd, ["config", "user.email", email], self._command_policy)

    async def configure_remote(self, cwd: Path, remote: str, url: str, *, secret: str | None) -> None:
        if secret and secret not in self._secrets:
            self._secrets.append(secret)

        result = await self._checked(cwd, ["remote"], "list remotes")
        remotes = {line.strip() for line in result.stdout.splitlines() if line.strip()}
        if remote in remotes:
            await self._retrying(cwd, ["remote", "set-url", remote, url], self._command_policy)
        else:
            await self._retrying(cwd, ["remote", "add", remote, url], self._command_policy)
        logger.debug("Remote %s now points at %s", remote, mask_secrets(url, self._secrets))

    async def fetch(self, cwd: Path, remote: str) -> None:
        await self._retrying(cwd, ["fetch", remote], self._fetch_policy)

    async def fetch_ref(self, cwd: Path, remote: str, refspec: str) -> None:
        await self._retrying(cwd, ["fetch", "--force", remote, refspec], self._fetch_policy)

    async def merge(self, cwd: Path, ref: str, message: str) -> CommandResult:
        return await self._runner.run(["git", "merge", "--no-ff", "--no-edit", "-m", message, ref], cwd)

    async def status_porcelain(self, cwd: Path) -> str:
        result = await self._checked(cwd, ["status", "--porcelain=v1"], "query working copy status")
        return result.stdout

    async def diff_path(self, cwd: Path, path: str) -> CommandResult:
        return await self._runner.run(["git", "diff", "--", path], cwd)

    async def reset_hard(self, cwd: Path) -> None:
        await self._retrying(cwd, ["reset", "--hard", "HEAD"], self._command_policy)

    async def clean_untracked(self, cwd: Path) -> None:
        await self._retrying(cwd, ["clean", "-fd"], self._command_policy)

    async def head_sha(self, cwd: Path) -> str:
        result = await self._checked(cwd, ["rev-parse", "HEAD"], "resolve HEAD")
        return result.stdout.strip()

    async def current_ref(self, cwd: Path) -> str | None:
        result = await self._runner.run(["git", "symbolic-ref", "--quiet", "--short", "HEAD"], cwd)
        if not result.ok:
            return None
        return result.stdout.strip() or None
