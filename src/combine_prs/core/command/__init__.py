from combine_prs.core.command.abc import CommandRunner
from combine_prs.core.command.fake import CommandCall, FakeCommandRunner
from combine_prs.core.command.real import RealCommandRunner

__all__ = ["CommandCall", "CommandRunner", "FakeCommandRunner", "RealCommandRunner"]
