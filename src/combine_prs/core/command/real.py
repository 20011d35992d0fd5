"""Production command runner using asyncio subprocesses."""

import asyncio
import logging
import os
from collections.abc import Mapping, Sequence
from pathlib import Path

from combine_prs.core.command.abc import CommandRunner
from combine_prs.core.errors import CommandLaunchError
from combine_prs.core.types import CommandResult

logger = logging.getLogger(__name__)


class RealCommandRunner(CommandRunner):
    """Runs commands with asyncio.create_subprocess_exec."""

    async def run(
        self,
        args: Sequence[str],
        cwd: Path,
        *,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        merged_env: dict[str, str] | None = None
        if env:
            merged_env = {**os.environ, **env}

        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                cwd=cwd,
                env=merged_env,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            # FileNotFoundError (no such binary or cwd), PermissionError, etc.
            raise CommandLaunchError(args, str(e)) from e

        stdout, stderr = await process.communicate()
        returncode = process.returncode if process.returncode is not None else -1
        logger.debug("Command %s exited with %d", args[0], returncode)

        return CommandResult(
            args=tuple(args),
            returncode=returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )
