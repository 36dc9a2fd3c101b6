import logging
from typing import Optional
from uuid import uuid4

from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException
from fastapi import Response
from fastapi import status

from spacecounter.deps import get_hub
from spacecounter.deps import get_settings
from spacecounter.errors import InvalidSpaceCode
from spacecounter.hub import Hub
from spacecounter.registry import Connection
from spacecounter.schemas import RegisterRequest
from spacecounter.schemas import RegisterResponse
from spacecounter.settings import Settings
from spacecounter.utils import validate_space_code

logger = logging.getLogger(__name__)

router = APIRouter(tags=["register"])


@router.post("/register", response_model=RegisterResponse)
async def register(
    body: Optional[RegisterRequest] = None,
    hub: Hub = Depends(get_hub),
    settings: Settings = Depends(get_settings),
):
    space_code = body.space_code if body else None

    if space_code is None:
        if settings.space_code_required:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Space code required")
        space_code = settings.default_space_code
    else:
        # Only allow valid space codes
        try:
            validate_space_code(space_code)
        except InvalidSpaceCode as e:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    if space_code is not None:
        await hub.spaces.ensure(space_code)

    connection_id = uuid4().hex
    await hub.registry.insert(Connection(id=connection_id, space_code=space_code))
    logger.info("%s registered (space=%s)", connection_id, space_code)

    return RegisterResponse(url=f"{settings.public_ws_base}/ws/{connection_id}")


@router.delete("/register/{connection_id}")
async def unregister(connection_id: str, hub: Hub = Depends(get_hub)):
    connection = await hub.registry.remove(connection_id)
    if connection is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Connection not found")

    # An upgraded connection is torn down by its forwarder once the channel closes
    if connection.upgraded:
        connection.outbound.close()
    logger.info("%s unregistered", connection_id)
    return Response(status_code=status.HTTP_200_OK)
