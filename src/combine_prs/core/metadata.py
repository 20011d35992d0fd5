"""Build metadata aggregation.

Collects, across every processed repository, which PRs and which head commits
went into the combined build, and writes them once as pretty-printed JSON.
"""

import asyncio
import json
import logging
from pathlib import Path

from combine_prs.core.errors import CombineError
from combine_prs.core.github.abc import GitHub
from combine_prs.core.types import BuildMetadata, PullRequestRef, RefInfo, RepositoryTarget

logger = logging.getLogger(__name__)

METADATA_FILENAME = "build-metadata.json"


class MetadataAggregator:
    """Accumulates BuildMetadata over a run.

    The metadata object is created lazily on the first accumulate() call, using
    the run context captured by capture_base(). Nothing is written if no
    repository ever accumulated.
    """

    def __init__(self, *, concurrency: int = 8) -> None:
        self._concurrency = concurrency
        self._run_url: str | None = None
        self._base_ref: str | None = None
        self._base_commit_sha: str | None = None
        self._base_captured = False
        self._metadata: BuildMetadata | None = None
        self._written = False

    @property
    def metadata(self) -> BuildMetadata | None:
        return self._metadata

    def capture_base(self, *, run_url: str | None, base_ref: str | None, base_commit_sha: str | None) -> None:
        """Record run context once; later calls are ignored."""
        if self._base_captured:
            return
        self._run_url = run_url
        self._base_ref = base_ref
        self._base_commit_sha = base_commit_sha
        self._base_captured = True

    async def accumulate(
        self, github: GitHub, target: RepositoryTarget, prs: list[PullRequestRef]
    ) -> None:
        """Append prs and one RefInfo per PR, in the order given.

        Head commit details are fetched concurrently in a TaskGroup; the first
        failure cancels the rest and nothing is recorded for target.

        Raises:
            GitHubApiError: If any commit detail cannot be fetched
            RuntimeError: If called after write()
        """
        if self._written:
            raise RuntimeError("Build metadata has already been written")

        semaphore = asyncio.Semaphore(max(1, self._concurrency))

        async def ref_info(pr: PullRequestRef) -> RefInfo:
            async with semaphore:
                commit = await github.get_commit(target, pr.head_sha)
            return RefInfo(
                ref=pr.head_branch,
                last_commit_sha=commit.sha,
                last_commit_message=commit.message,
                last_commit_author=commit.author_name,
                last_commit_author_date=commit.author_date,
                repo_owner=target.owner,
                repo_name=target.name,
                pr_number=pr.number,
                pr_title=pr.title,
            )

        try:
            async with asyncio.TaskGroup() as group:
                tasks = [group.create_task(ref_info(pr)) for pr in prs]
        except ExceptionGroup as eg:
            # The group has already cancelled the remaining fetches
            raise eg.exceptions[0] from None
        infos = [task.result() for task in tasks]

        if self._metadata is None:
            self._metadata = BuildMetadata(
                run_url=self._run_url,
                base_ref=self._base_ref,
                base_commit_sha=self._base_commit_sha,
            )
        self._metadata.prs.extend(prs)
        self._metadata.refs_info.extend(infos)
        logger.debug("Recorded %d PR(s) of %s in build metadata", len(prs), target.full_name)

    def write(self, path: Path) -> Path | None:
        """Serialize the metadata to path.

        Returns:
            The path written, or None when there was nothing to write

        Raises:
            CombineError: If the file cannot be written
            RuntimeError: If called more than once
        """
        if self._written:
            raise RuntimeError("Build metadata has already been written")
        self._written = True

        if self._metadata is None:
            return None

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(self._metadata.to_json(), indent=2) + "\n", encoding="utf-8")
        except OSError as e:
            raise CombineError(f"Failed to write build metadata to {path}: {e}") from e
        return path
