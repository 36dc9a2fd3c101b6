import logging

from spacecounter.channel import ChannelClosed
from spacecounter.registry import Connection
from spacecounter.registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class Broadcaster:
    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry

    async def publish(self, space_code: str, value: int) -> int:
        frame = str(value)
        delivered = 0

        def enqueue(connection: Connection):
            nonlocal delivered
            try:
                connection.outbound.send(frame)
                delivered += 1
            except ChannelClosed:
                # Receiver is gone, its disconnect cleanup removes the entry
                logger.debug("Skipping closed channel for connection %s", connection.id)

        await self.registry.for_each_in_space(space_code, enqueue)
        return delivered
