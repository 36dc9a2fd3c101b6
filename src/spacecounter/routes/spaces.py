from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException
from fastapi import status

from spacecounter.deps import get_hub
from spacecounter.hub import Hub
from spacecounter.schemas import SpaceRead

router = APIRouter(tags=["spaces"])


@router.get("/spaces/{space_code}", response_model=SpaceRead)
async def read_space(space_code: str, hub: Hub = Depends(get_hub)):
    space = await hub.spaces.get(space_code)
    if space is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Space not found")
    return SpaceRead.model_validate(space)
