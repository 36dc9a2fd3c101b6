import asyncio
from dataclasses import dataclass
from dataclasses import replace
from typing import Callable
from typing import Optional
from typing import TypeVar

from spacecounter.channel import OutboundChannel
from spacecounter.errors import ConnectionExists
from spacecounter.errors import ConnectionNotFound

T = TypeVar("T")


@dataclass
class Connection:
    id: str
    space_code: Optional[str] = None
    outbound: Optional[OutboundChannel] = None

    @property
    def upgraded(self) -> bool:
        return self.outbound is not None


class ConnectionRegistry:
    """In-memory map of connection id -> Connection.

    Every access goes through ``_lock`` and nothing awaits while holding it.
    ``for_each_in_space`` works on a snapshot taken under the lock, so a
    connection joining or leaving mid-broadcast may or may not be included.
    """

    def __init__(self):
        self._connections: dict[str, Connection] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._connections)

    async def insert(self, connection: Connection) -> None:
        async with self._lock:
            if connection.id in self._connections:
                raise ConnectionExists(connection.id)
            self._connections[connection.id] = connection

    async def remove(self, connection_id: str) -> Optional[Connection]:
        async with self._lock:
            return self._connections.pop(connection_id, None)

    async def get(self, connection_id: str) -> Optional[Connection]:
        async with self._lock:
            connection = self._connections.get(connection_id)
            return replace(connection) if connection else None

    async def mutate(self, connection_id: str, fn: Callable[[Connection], T]) -> T:
        async with self._lock:
            connection = self._connections.get(connection_id)
            if connection is None:
                raise ConnectionNotFound(connection_id)
            return fn(connection)

    async def for_each_in_space(
        self, space_code: str, fn: Callable[[Connection], None]
    ) -> int:
        async with self._lock:
            members = [
                replace(c)
                for c in self._connections.values()
                if c.space_code == space_code and c.upgraded
            ]
        for connection in members:
            fn(connection)
        return len(members)
