from fastapi import APIRouter
from fastapi import Depends
from fastapi import WebSocket

from spacecounter.deps import get_hub
from spacecounter.hub import Hub

router = APIRouter(tags=["ws"])


@router.websocket("/ws/{connection_id}")
async def websocket_endpoint(websocket: WebSocket, connection_id: str, hub: Hub = Depends(get_hub)):
    await hub.lifecycle.serve(websocket, connection_id)
