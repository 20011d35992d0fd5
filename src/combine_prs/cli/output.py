"""Output utilities for CLI commands with clear intent.

user_output writes human-facing progress to stderr so stdout stays free for
machine-readable output. format_run_summary renders the end-of-run box.
"""

import os
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import click
from rich.panel import Panel
from rich.text import Text

if TYPE_CHECKING:
    from combine_prs.core.runner import RunReport

MASK = "***"


def user_output(message: Any = "", nl: bool = True) -> None:
    """Print a user-facing message to stderr."""
    click.echo(message, nl=nl, err=True)


def mask_secrets(text: str, secrets: Sequence[str]) -> str:
    """Replace every non-empty secret in text with a fixed mask."""
    for secret in secrets:
        if secret:
            text = text.replace(secret, MASK)
    return text


def report_failure(message: str) -> None:
    """Print a styled error and, under GitHub Actions, an error annotation."""
    user_output(click.style("Error: ", fg="red") + message)
    if os.environ.get("GITHUB_ACTIONS") == "true":
        # Workflow commands treat newlines as the end of the message
        escaped = message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
        click.echo(f"::error::{escaped}")


def format_run_summary(report: "RunReport") -> Panel:
    """Format final summary box listing merged PRs and failures per repository."""
    lines: list[Text] = []

    if report.succeeded:
        lines.append(Text("✅ Status: Success", style="green"))
    else:
        lines.append(Text("❌ Status: Failed", style="red"))

    for repository, numbers in report.merged.items():
        merged = ", ".join(f"#{n}" for n in numbers) if numbers else "nothing to merge"
        lines.append(Text(f"{repository}: {merged}"))

    for repository, error in report.failures.items():
        lines.append(Text(""))
        lines.append(Text(f"{repository} failed:", style="red bold"))
        lines.append(Text(str(error), style="red"))

    if report.metadata_path is not None:
        lines.append(Text(""))
        lines.append(Text(f"📄 Metadata: {report.metadata_path}", style="blue"))

    content = Text("\n").join(lines)
    title = "Combined Build Ready" if report.succeeded else "Combined Build Failed"
    return Panel(
        content, title=title, border_style="green" if report.succeeded else "red", padding=(1, 2)
    )
