"""Tests for the per-repository merge state machine."""

from pathlib import Path

import pytest
from conftest import make_pr

from combine_prs.cli.config_schema import CombineConfig
from combine_prs.core.context import CombineContext
from combine_prs.core.errors import DiscoveryError, MergeConflictError
from combine_prs.core.git.fake import FakeGit
from combine_prs.core.github.fake import FakeGitHub
from combine_prs.core.metadata import MetadataAggregator
from combine_prs.core.orchestrator import build_remote_url, process_repository
from combine_prs.core.types import CommandResult, RepositoryTarget

TARGET = RepositoryTarget(
    owner="acme", name="service", labels=frozenset({"merge-to:indev"}), credential="tok"
)
CONFIG = CombineConfig(repositories=(TARGET,), path=Path("/work"))


def test_remote_url_embeds_repository_credential() -> None:
    assert build_remote_url("github.com", TARGET) == "https://tok@github.com/acme/service"


def test_remote_url_without_credential() -> None:
    target = RepositoryTarget(owner="acme", name="service")

    assert build_remote_url("ghe.example.com", target) == "https://ghe.example.com/acme/service"


async def test_prs_merged_in_ascending_order() -> None:
    """PRs discovered as 5, 2, 9 are fetched and merged as 2, 5, 9."""
    git = FakeGit()
    github = FakeGitHub(pull_requests=[make_pr(5), make_pr(2), make_pr(9)])
    ctx = CombineContext.for_test(git=git, github=github)

    merged: list[int] = []
    await process_repository(ctx, CONFIG, TARGET, None, merged)

    assert merged == [2, 5, 9]
    assert git.merged == [
        "combine/acme/service/pr-2",
        "combine/acme/service/pr-5",
        "combine/acme/service/pr-9",
    ]
    assert git.fetches == ["origin"]
    assert git.fetched_refs == [
        "+pull/2/head:combine/acme/service/pr-2",
        "+pull/5/head:combine/acme/service/pr-5",
        "+pull/9/head:combine/acme/service/pr-9",
    ]
    assert git.operations == [
        "remote origin",
        "fetch origin",
        "fetch +pull/2/head:combine/acme/service/pr-2",
        "merge combine/acme/service/pr-2",
        "fetch +pull/5/head:combine/acme/service/pr-5",
        "merge combine/acme/service/pr-5",
        "fetch +pull/9/head:combine/acme/service/pr-9",
        "merge combine/acme/service/pr-9",
    ]


async def test_remote_points_at_repository_with_its_credential() -> None:
    git = FakeGit()
    ctx = CombineContext.for_test(git=git, github=FakeGitHub(pull_requests=[make_pr(1)]))

    await process_repository(ctx, CONFIG, TARGET, None, [])

    assert git.remote_urls == [("origin", "https://tok@github.com/acme/service")]


async def test_merge_commit_message_names_pr() -> None:
    git = FakeGit()
    ctx = CombineContext.for_test(git=git, github=FakeGitHub(pull_requests=[make_pr(4)]))

    await process_repository(ctx, CONFIG, TARGET, None, [])

    assert git.merge_messages == ["Merge PR #4 from dev4/feature-4: Feature 4"]


async def test_conflict_aborts_remaining_prs() -> None:
    """A failed merge stops the repository; later PRs are never fetched."""
    conflict = CommandResult(args=("git", "merge"), returncode=1, stdout="CONFLICT", stderr="")
    git = FakeGit(
        merge_results={"combine/acme/service/pr-5": conflict},
        conflict_status={"combine/acme/service/pr-5": "UU app.py"},
    )
    github = FakeGitHub(pull_requests=[make_pr(2), make_pr(5), make_pr(9)])
    ctx = CombineContext.for_test(git=git, github=github)
    merged: list[int] = []

    with pytest.raises(MergeConflictError) as exc_info:
        await process_repository(ctx, CONFIG, TARGET, None, merged)

    assert exc_info.value.pr_number == 5
    assert exc_info.value.conflicted_files == ["app.py"]
    assert merged == [2]
    assert git.merged == ["combine/acme/service/pr-2"]
    assert "fetch +pull/9/head:combine/acme/service/pr-9" not in git.operations
    assert git.operations[-2:] == ["reset", "clean"]
    assert git.status == ""


async def test_metadata_accumulated_after_merges() -> None:
    git = FakeGit()
    github = FakeGitHub(pull_requests=[make_pr(3), make_pr(1)])
    ctx = CombineContext.for_test(git=git, github=github)
    aggregator = MetadataAggregator()

    await process_repository(ctx, CONFIG, TARGET, aggregator, [])

    assert aggregator.metadata is not None
    assert [pr.number for pr in aggregator.metadata.prs] == [1, 3]
    assert sorted(github.commit_calls) == [make_pr(1).head_sha, make_pr(3).head_sha]


async def test_metadata_keeps_prs_merged_before_conflict() -> None:
    """PR #2 is in the working copy when PR #5 conflicts, so it is recorded."""
    conflict = CommandResult(args=("git", "merge"), returncode=1, stdout="", stderr="")
    git = FakeGit(merge_results={"combine/acme/service/pr-5": conflict})
    github = FakeGitHub(pull_requests=[make_pr(2), make_pr(5)])
    ctx = CombineContext.for_test(git=git, github=github)
    aggregator = MetadataAggregator()

    with pytest.raises(MergeConflictError):
        await process_repository(ctx, CONFIG, TARGET, aggregator, [])

    assert aggregator.metadata is not None
    assert [pr.number for pr in aggregator.metadata.prs] == [2]
    assert [info.pr_number for info in aggregator.metadata.refs_info] == [2]


async def test_unrecordable_partial_metadata_keeps_merge_error(
    capsys: pytest.CaptureFixture[str],
) -> None:
    conflict = CommandResult(args=("git", "merge"), returncode=1, stdout="", stderr="")
    git = FakeGit(merge_results={"combine/acme/service/pr-5": conflict})
    github = FakeGitHub(
        pull_requests=[make_pr(2), make_pr(5)],
        failing_commits=frozenset({make_pr(2).head_sha}),
    )
    ctx = CombineContext.for_test(git=git, github=github)

    with pytest.raises(MergeConflictError):
        await process_repository(ctx, CONFIG, TARGET, MetadataAggregator(), [])

    assert "could not record merged PRs of acme/service" in capsys.readouterr().err


async def test_no_metadata_when_first_merge_fails() -> None:
    conflict = CommandResult(args=("git", "merge"), returncode=1, stdout="", stderr="")
    git = FakeGit(merge_results={"combine/acme/service/pr-1": conflict})
    ctx = CombineContext.for_test(git=git, github=FakeGitHub(pull_requests=[make_pr(1)]))
    aggregator = MetadataAggregator()

    with pytest.raises(MergeConflictError):
        await process_repository(ctx, CONFIG, TARGET, aggregator, [])

    assert aggregator.metadata is None


async def test_discovery_failure_leaves_working_copy_untouched() -> None:
    git = FakeGit()
    github = FakeGitHub(failing_repositories=frozenset({"acme/service"}))
    ctx = CombineContext.for_test(git=git, github=github)

    with pytest.raises(DiscoveryError):
        await process_repository(ctx, CONFIG, TARGET, None, [])

    assert git.operations == []
