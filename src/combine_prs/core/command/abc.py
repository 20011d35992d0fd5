"""Abstract interface for running external commands.

git and gh are both driven through this interface. Implementations capture
stdout/stderr and report the exit status; they never raise on a non-zero exit.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from pathlib import Path

from combine_prs.core.types import CommandResult


class CommandRunner(ABC):
    """Abstract interface for command execution.

    All implementations (real and fake) must implement this interface.
    """

    @abstractmethod
    async def run(
        self,
        args: Sequence[str],
        cwd: Path,
        *,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        """Run a command to completion and capture its output.

        Args:
            args: Executable followed by its arguments
            cwd: Working directory for the command
            env: Extra environment variables layered over the current environment

        Returns:
            CommandResult with exit status and decoded stdout/stderr

        Raises:
            CommandLaunchError: If the process could not be started
        """
        ...
