"""Real time implementation using asyncio.sleep()."""

import asyncio

from combine_prs.core.time.abc import Time


class RealTime(Time):
    """Production implementation using asyncio.sleep()."""

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
