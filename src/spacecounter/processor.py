import logging
from typing import Optional

from pydantic import ValidationError

from spacecounter.broadcaster import Broadcaster
from spacecounter.errors import ConnectionNotFound
from spacecounter.errors import ProtocolError
from spacecounter.registry import Connection
from spacecounter.registry import ConnectionRegistry
from spacecounter.schemas import CountUpdate
from spacecounter.schemas import SpaceSet
from spacecounter.schemas import UpdateRequest
from spacecounter.spaces import SpaceTable

logger = logging.getLogger(__name__)

PING_MESSAGES = ("ping", "ping\n")


def parse_update(text: str) -> UpdateRequest:
    try:
        return UpdateRequest.model_validate_json(text)
    except ValidationError as e:
        raise ProtocolError(f"Malformed update message: {e.error_count()} error(s)") from e


class UpdateProcessor:
    """Applies one inbound websocket text frame for a connection.

    Connection state is read and released before the space table is locked,
    and nothing holds a lock while broadcasting.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        spaces: SpaceTable,
        broadcaster: Broadcaster,
    ):
        self.registry = registry
        self.spaces = spaces
        self.broadcaster = broadcaster

    async def process(self, connection_id: str, text: str) -> Optional[int]:
        """Returns the broadcast count, or None if nothing was broadcast."""
        # Short-circuit for pings so user-friendly clients can send these
        if text in PING_MESSAGES:
            logger.debug("Ping from connection %s", connection_id)
            return None

        connection = await self.registry.get(connection_id)
        if connection is None:
            logger.warning("Dropping message, no connection found for id=%s", connection_id)
            return None

        try:
            request = parse_update(text)
        except ProtocolError as e:
            logger.warning("Dropping message from connection %s: %s", connection_id, e)
            return None

        if request.space_set is not None:
            await self._set_space(connection_id, request.space_set)
            return None
        return await self._update_count(connection, request.count_update)

    async def _set_space(self, connection_id: str, space_set: SpaceSet) -> None:
        def join(connection: Connection):
            connection.space_code = space_set.space_code

        try:
            await self.registry.mutate(connection_id, join)
        except ConnectionNotFound:
            logger.warning("Connection %s left before joining %s", connection_id, space_set.space_code)
            return
        logger.info("Connection %s joined space %s", connection_id, space_set.space_code)

    async def _update_count(self, connection: Connection, update: CountUpdate) -> Optional[int]:
        space_code = connection.space_code
        if space_code is None:
            logger.warning("Dropping count update, connection %s has not joined a space", connection.id)
            return None

        try:
            count = await self.spaces.adjust(space_code, update.mode, update.value)
        except ProtocolError as e:
            logger.warning("Dropping count update from connection %s: %s", connection.id, e)
            return None

        await self.broadcaster.publish(space_code, count)
        return count
