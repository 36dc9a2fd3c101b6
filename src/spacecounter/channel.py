import asyncio

_CLOSE = object()


class ChannelClosed(Exception):
    pass


class OutboundChannel:
    """Unbounded, ordered queue of text frames for a single connection.

    Any number of producers may ``send``; exactly one forwarding task iterates
    the channel and writes to the socket. ``close`` lets the consumer drain
    what was queued before it and then stop.
    """

    def __init__(self):
        self._queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, text: str) -> None:
        if self.closed:
            raise ChannelClosed()
        self._queue.put_nowait(text)

    def close(self) -> None:
        if self.closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSE)

    def __aiter__(self):
        return self

    async def __anext__(self) -> str:
        item = await self._queue.get()
        if item is _CLOSE:
            raise StopAsyncIteration
        return item
