"""Time operations abstraction for testing.

Backoff waits go through this interface so tests can assert on requested
delays without actually sleeping.
"""

from abc import ABC, abstractmethod


class Time(ABC):
    """Abstract time operations for dependency injection."""

    @abstractmethod
    async def sleep(self, seconds: float) -> None:
        """Suspend the current task for the given number of seconds."""
        ...
