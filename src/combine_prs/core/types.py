"""Value types shared across the merge engine."""

from dataclasses import dataclass, field
from typing import Any, Literal

DiscoveryMode = Literal["search", "list"]


@dataclass(frozen=True)
class RepositoryTarget:
    """One repository to process and the labels selecting its PRs."""

    owner: str
    name: str
    labels: frozenset[str] = frozenset()
    credential: str | None = field(default=None, repr=False)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True)
class PullRequestRef:
    """An open pull request selected for merging."""

    owner: str
    repo: str
    number: int
    head_branch: str
    head_sha: str
    author: str
    title: str
    labels: tuple[str, ...] = ()

    @property
    def local_branch(self) -> str:
        """Local branch the PR head is fetched into.

        Always exactly four components, so refs of different repositories
        sharing one working copy never nest inside each other. The head
        branch name is deliberately not part of it.
        """
        return f"combine/{self.owner}/{self.repo}/pr-{self.number}"

    def to_json(self) -> dict[str, Any]:
        return {
            "repoOwner": self.owner,
            "repoName": self.repo,
            "number": self.number,
            "headRef": self.head_branch,
            "headSha": self.head_sha,
            "author": self.author,
            "title": self.title,
            "labels": list(self.labels),
        }


@dataclass(frozen=True)
class CommitInfo:
    """Details of a single commit from the GitHub API."""

    sha: str
    message: str
    author_name: str
    author_date: str


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one command execution."""

    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def describe(self) -> str:
        """One-line failure summary used in retry and error messages."""
        detail = self.stderr.strip() or self.stdout.strip()
        summary = f"exit code {self.returncode}"
        if detail:
            summary += f": {detail}"
        return summary


@dataclass(frozen=True)
class RefInfo:
    """What was merged for one PR, as recorded in build metadata."""

    ref: str
    last_commit_sha: str
    last_commit_message: str
    last_commit_author: str
    last_commit_author_date: str
    repo_owner: str
    repo_name: str
    pr_number: int
    pr_title: str

    def to_json(self) -> dict[str, Any]:
        return {
            "ref": self.ref,
            "lastCommitSha": self.last_commit_sha,
            "lastCommitMessage": self.last_commit_message,
            "lastCommitAuthor": self.last_commit_author,
            "lastCommitAuthorDate": self.last_commit_author_date,
            "repoOwner": self.repo_owner,
            "repoName": self.repo_name,
            "prNumber": self.pr_number,
            "prTitle": self.pr_title,
        }


@dataclass
class BuildMetadata:
    """Record of everything merged during a run.

    Mutable while the run is in progress; the aggregator owns the only
    reference and stops appending once it has been written.
    """

    run_url: str | None
    base_ref: str | None
    base_commit_sha: str | None
    prs: list[PullRequestRef] = field(default_factory=list)
    refs_info: list[RefInfo] = field(default_factory=list)

    def to_json(self) -> dict[str, Any]:
        return {
            "runUrl": self.run_url,
            "baseRef": self.base_ref,
            "baseCommitSha": self.base_commit_sha,
            "prs": [pr.to_json() for pr in self.prs],
            "refsInfo": [info.to_json() for info in self.refs_info],
        }
