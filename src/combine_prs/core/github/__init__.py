from combine_prs.core.github.abc import GitHub
from combine_prs.core.github.fake import FakeGitHub
from combine_prs.core.github.real import RealGitHub

__all__ = ["FakeGitHub", "GitHub", "RealGitHub"]
