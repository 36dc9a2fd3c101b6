import asyncio
import logging

from fastapi import status
from fastapi import WebSocket
from fastapi import WebSocketDisconnect
from fastapi.responses import JSONResponse
from starlette.websockets import WebSocketState

from spacecounter.channel import OutboundChannel
from spacecounter.errors import ConnectionNotFound
from spacecounter.errors import TransportError
from spacecounter.processor import UpdateProcessor
from spacecounter.registry import Connection
from spacecounter.registry import ConnectionRegistry

logger = logging.getLogger(__name__)

DENIAL_EXTENSION = "websocket.http.response"


async def deny(websocket: WebSocket, status_code: int, detail: str) -> None:
    """Refuse an upgrade with an HTTP response where the server allows it."""
    if DENIAL_EXTENSION in websocket.scope.get("extensions", {}):
        await websocket.send_denial_response(
            JSONResponse({"detail": detail}, status_code=status_code)
        )
    else:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=detail)


def attach(connection: Connection, channel: OutboundChannel) -> bool:
    if connection.upgraded:
        return False
    connection.outbound = channel
    return True


class ConnectionLifecycle:
    """Runs one upgraded connection: Provisioned -> Upgraded -> Closed.

    Each connection gets a reader task (socket -> UpdateProcessor) and a
    forwarder task (OutboundChannel -> socket). They share nothing but the
    channel. When either one finishes the other is cancelled and the
    connection is removed from the registry.
    """

    def __init__(self, registry: ConnectionRegistry, processor: UpdateProcessor):
        self.registry = registry
        self.processor = processor

    async def serve(self, websocket: WebSocket, connection_id: str) -> None:
        channel = OutboundChannel()
        try:
            attached = await self.registry.mutate(
                connection_id, lambda connection: attach(connection, channel)
            )
        except ConnectionNotFound:
            logger.warning("Refusing upgrade, no connection found for id=%s", connection_id)
            await deny(websocket, status.HTTP_404_NOT_FOUND, "Connection not found")
            return

        if not attached:
            logger.warning("Refusing upgrade, connection %s is already upgraded", connection_id)
            await deny(websocket, status.HTTP_409_CONFLICT, "Connection already upgraded")
            return

        try:
            await websocket.accept()
            logger.info("%s connected", connection_id)
            await self._run(websocket, connection_id, channel)
        finally:
            # Nothing may be awaited before the entry is gone; this also runs
            # when the handler itself is cancelled.
            await self.registry.remove(connection_id)
            channel.close()
            logger.info("%s disconnected", connection_id)

    async def _run(self, websocket: WebSocket, connection_id: str, channel: OutboundChannel):
        reader = asyncio.create_task(self._read_loop(websocket, connection_id))
        forwarder = asyncio.create_task(self._forward_loop(websocket, channel))
        try:
            done, pending = await asyncio.wait(
                {reader, forwarder}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            reader.cancel()
            forwarder.cancel()
            raise

        for task in pending:
            task.cancel()
        # wait() does not re-raise the cancelled tasks' CancelledError as our own
        if pending:
            await asyncio.wait(pending)

        for task in done:
            exc = task.exception()
            if exc is not None:
                logger.warning("Closing connection %s: %s", connection_id, exc)

        if forwarder in done:
            await self._close(websocket, connection_id)

    async def _read_loop(self, websocket: WebSocket, connection_id: str) -> None:
        while True:
            try:
                message = await websocket.receive()
            except (RuntimeError, OSError) as e:
                raise TransportError(f"error receiving ws message: {e}") from e

            if message["type"] == "websocket.disconnect":
                return

            text = message.get("text")
            if text is None:
                logger.debug("Ignoring binary frame from connection %s", connection_id)
                continue
            await self.processor.process(connection_id, text)

    async def _forward_loop(self, websocket: WebSocket, channel: OutboundChannel) -> None:
        async for frame in channel:
            try:
                await websocket.send_text(frame)
            except (WebSocketDisconnect, RuntimeError, OSError) as e:
                raise TransportError(f"error sending ws message: {e}") from e

    async def _close(self, websocket: WebSocket, connection_id: str) -> None:
        if (
            websocket.application_state != WebSocketState.CONNECTED
            or websocket.client_state != WebSocketState.CONNECTED
        ):
            return
        try:
            await websocket.close()
        except (RuntimeError, OSError) as e:
            logger.debug("Socket for connection %s already gone: %s", connection_id, e)
