"""In-memory fake implementation of CommandRunner for testing."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from combine_prs.core.command.abc import CommandRunner
from combine_prs.core.errors import CommandLaunchError
from combine_prs.core.types import CommandResult


@dataclass(frozen=True)
class CommandCall:
    """Record of one run() invocation."""

    args: tuple[str, ...]
    cwd: Path
    env: dict[str, str] | None


class FakeCommandRunner(CommandRunner):
    """In-memory fake implementation for testing.

    All state is provided via constructor using keyword arguments.
    This class has NO public setup methods.
    """

    def __init__(
        self,
        *,
        results: Mapping[tuple[str, ...], Sequence[CommandResult]] | None = None,
        missing_executables: frozenset[str] = frozenset(),
    ) -> None:
        """Create FakeCommandRunner with pre-configured results.

        Args:
            results: Mapping of full argument tuple -> results returned on
                successive calls. The last result repeats once the sequence is
                used up. Unlisted commands succeed with empty output.
            missing_executables: Executables that fail to launch
        """
        self._results = {args: list(seq) for args, seq in (results or {}).items()}
        self._missing_executables = missing_executables
        self._calls: list[CommandCall] = []

    @property
    def calls(self) -> list[CommandCall]:
        """Read-only access to recorded calls for test assertions."""
        return list(self._calls)

    @property
    def commands(self) -> list[tuple[str, ...]]:
        """Argument tuples of every recorded call, in order."""
        return [call.args for call in self._calls]

    async def run(
        self,
        args: Sequence[str],
        cwd: Path,
        *,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        key = tuple(args)
        self._calls.append(CommandCall(args=key, cwd=cwd, env=dict(env) if env else None))

        if key[0] in self._missing_executables:
            raise CommandLaunchError(key, f"No such file or directory: '{key[0]}'")

        queued = self._results.get(key)
        if not queued:
            return CommandResult(args=key, returncode=0, stdout="", stderr="")
        if len(queued) > 1:
            return queued.pop(0)
        return queued[0]
