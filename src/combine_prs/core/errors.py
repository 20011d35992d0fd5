"""Exception hierarchy for combine-prs.

Every failure the engine can surface derives from CombineError so the CLI has a
single error boundary. Messages are written for a human reading CI logs: they
name the repository and PR involved and carry the raw command output.
"""

from collections.abc import Sequence


class CombineError(Exception):
    """Base class for all combine-prs failures."""


class ConfigError(CombineError):
    """Configuration could not be loaded or is invalid."""


class CommandLaunchError(CombineError):
    """A command could not be started at all (missing binary, bad cwd).

    Never retried: launching again will fail the same way.
    """

    def __init__(self, args: Sequence[str], reason: str) -> None:
        self.command = list(args)
        self.reason = reason
        super().__init__(f"Could not launch '{' '.join(self.command)}': {reason}")


class CommandFailedError(CombineError):
    """A command ran and exited non-zero."""

    def __init__(self, message: str, *, returncode: int, stdout: str, stderr: str) -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(message)


class RetryExhaustedError(CombineError):
    """A retryable command failed on every attempt."""

    def __init__(self, args: Sequence[str], failures: Sequence[str]) -> None:
        self.command = list(args)
        self.failures = list(failures)
        lines = [f"Command '{' '.join(self.command)}' failed after {len(self.failures)} attempt(s):"]
        for index, failure in enumerate(self.failures, start=1):
            lines.append(f"  attempt {index}: {failure}")
        super().__init__("\n".join(lines))


class GitHubApiError(CombineError):
    """A GitHub API call made through gh failed."""


class DiscoveryError(CombineError):
    """Listing or searching pull requests for a repository failed."""


class MergeConflictError(CombineError):
    """Merging a pull request failed; the working copy has been reset."""

    def __init__(self, *, repository: str, pr_number: int, conflicted_files: Sequence[str]) -> None:
        self.repository = repository
        self.pr_number = pr_number
        self.conflicted_files = list(conflicted_files)
        message = f"Failed to merge PR #{pr_number} of {repository}"
        if self.conflicted_files:
            message += f": conflicts in {', '.join(self.conflicted_files)}"
        super().__init__(message)


class CombineRunError(CombineError):
    """One or more repositories failed during a run."""

    def __init__(self, failures: dict[str, CombineError]) -> None:
        self.failures = failures
        lines = [f"{len(failures)} repository(ies) failed:"]
        for repository, error in failures.items():
            lines.append(f"- {repository}: {error}")
        super().__init__("\n".join(lines))
