"""Clock abstraction so polling and display delays can be faked in tests."""

import asyncio
import time


class Clock:
    """Real wall clock backed by asyncio.sleep and time.monotonic."""

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    def monotonic(self) -> float:
        return time.monotonic()


SYSTEM_CLOCK = Clock()
