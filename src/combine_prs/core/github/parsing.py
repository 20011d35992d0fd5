"""Parsing of GitHub REST payloads into value types.

Payloads are validated here, at the API boundary, so the rest of the engine
only ever sees PullRequestRef and CommitInfo.
"""

import json
from collections.abc import Iterable
from typing import Any

from combine_prs.core.errors import GitHubApiError
from combine_prs.core.types import CommitInfo, PullRequestRef


def build_search_query(owner: str, repo: str, labels: Iterable[str]) -> str:
    """Search query matching open PRs in owner/repo that carry every label.

    Labels are sorted so the same configuration always produces the same query.
    """
    parts = [f"repo:{owner}/{repo}", "is:pr", "is:open"]
    parts.extend(f'label:"{label}"' for label in sorted(labels))
    return " ".join(parts)


def parse_json_lines(stdout: str) -> list[Any]:
    """Parse output of `gh api --paginate --jq` that emits one JSON value per line."""
    try:
        return [json.loads(line) for line in stdout.splitlines() if line.strip()]
    except json.JSONDecodeError as e:
        raise GitHubApiError(f"Invalid JSON from GitHub API: {e}") from e


def parse_json_object(stdout: str) -> dict[str, Any]:
    try:
        data = json.loads(stdout)
    except json.JSONDecodeError as e:
        raise GitHubApiError(f"Invalid JSON from GitHub API: {e}") from e
    if not isinstance(data, dict):
        raise GitHubApiError(f"Expected a JSON object from GitHub API, got {type(data).__name__}")
    return data


def parse_pull_request(owner: str, repo: str, data: dict[str, Any]) -> PullRequestRef:
    """Convert a pulls API payload into a PullRequestRef."""
    try:
        head = data["head"]
        user = data.get("user") or {}
        return PullRequestRef(
            owner=owner,
            repo=repo,
            number=int(data["number"]),
            head_branch=str(head["ref"]),
            head_sha=str(head["sha"]),
            # Deleted accounts come back as a null user
            author=str(user.get("login", "ghost")),
            title=str(data.get("title") or ""),
            labels=tuple(str(label["name"]) for label in data.get("labels") or []),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise GitHubApiError(f"Malformed pull request payload for {owner}/{repo}: {e!r}") from e


def parse_commit(data: dict[str, Any]) -> CommitInfo:
    """Convert a commits API payload into a CommitInfo."""
    try:
        commit = data["commit"]
        author = commit.get("author") or {}
        return CommitInfo(
            sha=str(data["sha"]),
            message=str(commit.get("message") or ""),
            author_name=str(author.get("name") or ""),
            author_date=str(author.get("date") or ""),
        )
    except (KeyError, TypeError) as e:
        raise GitHubApiError(f"Malformed commit payload: {e!r}") from e


def has_all_labels(pr: PullRequestRef, labels: frozenset[str]) -> bool:
    return labels.issubset(pr.labels)


def parse_pull_request_numbers(owner: str, repo: str, stdout: str) -> list[int]:
    """Parse the PR numbers printed by a search with `--jq .items[].number`."""
    numbers: list[int] = []
    for value in parse_json_lines(stdout):
        if not isinstance(value, int) or isinstance(value, bool):
            raise GitHubApiError(f"Malformed search result for {owner}/{repo}: {value!r}")
        numbers.append(value)
    return numbers
