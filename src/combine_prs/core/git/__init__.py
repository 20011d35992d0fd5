"""Git operations subpackage.

This subpackage provides abstractions over git operations with support for
testing via fakes.
"""

from combine_prs.core.git.abc import Git, parse_conflicted_paths
from combine_prs.core.git.fake import FakeGit
from combine_prs.core.git.real import RealGit

__all__ = ["FakeGit", "Git", "RealGit", "parse_conflicted_paths"]
