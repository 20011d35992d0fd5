"""Tests for command retry with exponential backoff and jitter."""

from pathlib import Path

import pytest

from combine_prs.core.command.fake import FakeCommandRunner
from combine_prs.core.errors import CommandLaunchError, RetryExhaustedError
from combine_prs.core.retry import RetryPolicy, run_with_retry
from combine_prs.core.time.fake import FakeTime
from combine_prs.core.types import CommandResult

FETCH = ("git", "fetch", "origin")
NO_JITTER = RetryPolicy(max_attempts=3, base_delay=1.0, max_delay=30.0, jitter=0.0)


def _result(returncode: int, stderr: str = "") -> CommandResult:
    return CommandResult(args=FETCH, returncode=returncode, stdout="", stderr=stderr)


async def test_succeeds_on_first_attempt_without_sleeping() -> None:
    """A successful command runs once and never waits."""
    runner = FakeCommandRunner()
    time = FakeTime()

    result = await run_with_retry(runner, time, FETCH, Path("/repo"), NO_JITTER)

    assert result.ok
    assert runner.commands == [FETCH]
    assert time.sleep_calls == []


async def test_retries_until_success() -> None:
    """A transient non-zero exit is retried and the later success returned."""
    runner = FakeCommandRunner(
        results={FETCH: [_result(128, "fatal: unable to access"), _result(0)]}
    )
    time = FakeTime()

    result = await run_with_retry(runner, time, FETCH, Path("/repo"), NO_JITTER)

    assert result.ok
    assert len(runner.commands) == 2
    assert time.sleep_calls == [1.0]


async def test_exhausts_attempts_and_lists_every_failure() -> None:
    """An always-failing command runs max_attempts times, then raises with each failure."""
    runner = FakeCommandRunner(
        results={
            FETCH: [
                _result(128, "first"),
                _result(128, "second"),
                _result(128, "third"),
            ]
        }
    )
    time = FakeTime()

    with pytest.raises(RetryExhaustedError) as exc_info:
        await run_with_retry(runner, time, FETCH, Path("/repo"), NO_JITTER)

    assert len(runner.commands) == 3
    assert exc_info.value.failures == [
        "exit code 128: first",
        "exit code 128: second",
        "exit code 128: third",
    ]
    message = str(exc_info.value)
    assert message.index("first") < message.index("second") < message.index("third")
    # No wait after the final attempt
    assert time.sleep_calls == [1.0, 2.0]


async def test_delays_are_non_decreasing_and_capped() -> None:
    """Backoff doubles per attempt and never exceeds max_delay."""
    runner = FakeCommandRunner(results={FETCH: [_result(1)]})
    time = FakeTime()
    policy = RetryPolicy(max_attempts=8, base_delay=1.0, max_delay=30.0, jitter=0.0)

    with pytest.raises(RetryExhaustedError):
        await run_with_retry(runner, time, FETCH, Path("/repo"), policy)

    assert time.sleep_calls == [1.0, 2.0, 4.0, 8.0, 16.0, 30.0, 30.0]
    assert time.sleep_calls == sorted(time.sleep_calls)


async def test_jitter_is_added_to_backoff() -> None:
    """Jitter comes from the uniform source, bounded by the jitter window."""
    runner = FakeCommandRunner(results={FETCH: [_result(1), _result(0)]})
    time = FakeTime()
    windows: list[tuple[float, float]] = []

    def uniform(low: float, high: float) -> float:
        windows.append((low, high))
        return 0.25

    policy = RetryPolicy(max_attempts=3, base_delay=1.0, max_delay=30.0, jitter=1.0)
    await run_with_retry(runner, time, FETCH, Path("/repo"), policy, uniform=uniform)

    assert windows == [(0, 1.0)]
    assert time.sleep_calls == [1.25]


async def test_launch_failure_is_not_retried() -> None:
    """A command that cannot be launched fails after exactly one attempt."""
    runner = FakeCommandRunner(missing_executables=frozenset({"git"}))
    time = FakeTime()

    with pytest.raises(CommandLaunchError):
        await run_with_retry(runner, time, FETCH, Path("/repo"), NO_JITTER)

    assert len(runner.commands) == 1
    assert time.sleep_calls == []


async def test_secrets_are_masked_in_failures() -> None:
    """Credentials in arguments or output never reach the error message."""
    args = ("git", "remote", "set-url", "origin", "https://s3cret@github.com/acme/service")
    runner = FakeCommandRunner(
        results={
            args: [
                CommandResult(
                    args=args,
                    returncode=2,
                    stdout="",
                    stderr="fatal: could not reach https://s3cret@github.com",
                )
            ]
        }
    )

    with pytest.raises(RetryExhaustedError) as exc_info:
        await run_with_retry(
            runner, FakeTime(), args, Path("/repo"), NO_JITTER, secrets=["s3cret"]
        )

    assert "s3cret" not in str(exc_info.value)
    assert "***" in str(exc_info.value)


def test_delay_for_without_jitter_ignores_uniform() -> None:
    policy = RetryPolicy(base_delay=2.0, max_delay=5.0, jitter=0.0)

    def uniform(low: float, high: float) -> float:
        raise AssertionError("uniform should not be called without jitter")

    assert policy.delay_for(0, uniform) == 2.0
    assert policy.delay_for(1, uniform) == 4.0
    assert policy.delay_for(2, uniform) == 5.0


async def test_jittered_delays_stay_within_backoff_bounds() -> None:
    """Past the cap, jitter can make a delay shorter than the one before it."""
    runner = FakeCommandRunner(results={FETCH: [_result(1, "timeout")]})
    time = FakeTime()
    policy = RetryPolicy(max_attempts=10, base_delay=1.0, max_delay=30.0, jitter=1.0)

    with pytest.raises(RetryExhaustedError):
        await run_with_retry(runner, time, FETCH, Path("/repo"), policy)

    assert len(time.sleep_calls) == 9
    for index, delay in enumerate(time.sleep_calls):
        backoff = min(policy.max_delay, policy.base_delay * 2**index)
        assert backoff <= delay <= backoff + policy.jitter
        assert delay <= policy.max_delay + policy.jitter
