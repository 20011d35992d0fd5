"""Application context with dependency injection."""

from dataclasses import dataclass
from pathlib import Path

from combine_prs.cli.config_schema import CombineConfig
from combine_prs.core.command.real import RealCommandRunner
from combine_prs.core.git.abc import Git
from combine_prs.core.git.real import RealGit
from combine_prs.core.github.abc import GitHub
from combine_prs.core.github.real import RealGitHub
from combine_prs.core.retry import RetryPolicy
from combine_prs.core.time.abc import Time
from combine_prs.core.time.real import RealTime


@dataclass(frozen=True)
class CombineContext:
    """Immutable context holding all dependencies for a run.

    Created at CLI entry point and threaded through the application.
    Frozen to prevent accidental modification at runtime.
    """

    git: Git
    github: GitHub
    time: Time
    cwd: Path  # Invocation directory; metadata lands here by default

    @staticmethod
    def for_test(
        git: Git | None = None,
        github: GitHub | None = None,
        time: Time | None = None,
        cwd: Path | None = None,
    ) -> "CombineContext":
        """Create a context with fake implementations for anything not given."""
        from combine_prs.core.git.fake import FakeGit
        from combine_prs.core.github.fake import FakeGitHub
        from combine_prs.core.time.fake import FakeTime

        return CombineContext(
            git=git if git is not None else FakeGit(),
            github=github if github is not None else FakeGitHub(),
            time=time if time is not None else FakeTime(),
            cwd=cwd if cwd is not None else Path("/test/cwd"),
        )


def create_context(config: CombineConfig, cwd: Path) -> CombineContext:
    """Create production context with real implementations."""
    runner = RealCommandRunner()
    time = RealTime()
    git = RealGit(
        runner,
        time,
        command_policy=RetryPolicy(max_attempts=config.retries),
        fetch_policy=RetryPolicy(max_attempts=config.fetch_retries),
    )
    github = RealGitHub(runner, cwd, host=config.host)
    return CombineContext(git=git, github=github, time=time, cwd=cwd)
