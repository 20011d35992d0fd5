from combine_prs.core.time.abc import Time
from combine_prs.core.time.fake import FakeTime
from combine_prs.core.time.real import RealTime

__all__ = ["FakeTime", "RealTime", "Time"]
