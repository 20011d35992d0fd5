"""Retry logic with exponential backoff and jitter for transient failures.

Network-facing git commands (fetches, remote refreshes) fail intermittently in
CI. run_with_retry re-runs a command that exited non-zero, waiting

    delay = min(max_delay, base_delay * 2 ** attempt_index) + uniform(0, jitter)

between attempts. The jitter keeps concurrent CI jobs from retrying in lockstep.
A command that cannot be launched at all is not retried.
"""

import logging
import random
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from combine_prs.cli.output import mask_secrets, user_output
from combine_prs.core.command.abc import CommandRunner
from combine_prs.core.errors import CommandLaunchError, RetryExhaustedError
from combine_prs.core.time.abc import Time
from combine_prs.core.types import CommandResult

logger = logging.getLogger(__name__)

# Maximum accepted retry count from configuration
MAX_RETRY_ATTEMPTS = 100


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and backoff shape for one class of command."""

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    jitter: float = 1.0

    def delay_for(self, attempt_index: int, uniform: Callable[[float, float], float]) -> float:
        """Delay to wait after the attempt with the given zero-based index fails.

        The backoff before jitter never decreases; with jitter, successive
        delays are only bounded by [backoff, backoff + jitter].
        """
        backoff = min(self.max_delay, self.base_delay * (2**attempt_index))
        if self.jitter <= 0:
            return backoff
        return backoff + uniform(0, self.jitter)


async def run_with_retry(
    runner: CommandRunner,
    time: Time,
    args: Sequence[str],
    cwd: Path,
    policy: RetryPolicy,
    *,
    env: Mapping[str, str] | None = None,
    secrets: Sequence[str] = (),
    uniform: Callable[[float, float], float] = random.uniform,
) -> CommandResult:
    """Run a command, retrying non-zero exits with exponential backoff.

    Args:
        runner: Command runner used for every attempt
        time: Time abstraction used for backoff waits
        args: Executable followed by its arguments
        cwd: Working directory for the command
        policy: Attempt budget and backoff constants
        env: Extra environment variables for the command
        secrets: Values masked out of logged arguments and failure messages
        uniform: Source of jitter, random.uniform by default

    Returns:
        The first successful CommandResult

    Raises:
        CommandLaunchError: If the command cannot be launched (never retried)
        RetryExhaustedError: If every attempt exited non-zero
    """
    shown = [mask_secrets(arg, secrets) for arg in args]
    failures: list[str] = []

    for attempt in range(policy.max_attempts):
        logger.debug(
            "Running %s (attempt %d/%d)", " ".join(shown), attempt + 1, policy.max_attempts
        )
        try:
            result = await runner.run(args, cwd, env=env)
        except CommandLaunchError as e:
            if not secrets:
                raise
            raise CommandLaunchError(shown, mask_secrets(e.reason, secrets)) from None
        if result.ok:
            return result

        failure = mask_secrets(result.describe(), secrets)
        failures.append(failure)
        is_last_attempt = attempt == policy.max_attempts - 1
        if is_last_attempt:
            break

        delay = policy.delay_for(attempt, uniform)
        user_output(
            f"Command '{' '.join(shown)}' failed ({failure}); "
            f"retrying in {delay:.1f}s (attempt {attempt + 2}/{policy.max_attempts})..."
        )
        await time.sleep(delay)

    raise RetryExhaustedError(shown, failures)
