import asyncio
import typing


class AsyncJolt:
    """Give the event loop a turn on the way in and out of a block."""

    def __init__(self, delay: float = 0) -> None:
        self.delay = delay

    async def __aenter__(self) -> None:
        await asyncio.sleep(self.delay)

    async def __aexit__(self, *args: typing.Any, **kwargs: typing.Any) -> None:
        await asyncio.sleep(0)
