from typing import Optional

from pydantic import AliasChoices
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import model_validator
from pydantic import StrictInt


class RegisterRequest(BaseModel):
    space_code: Optional[str] = None


class RegisterResponse(BaseModel):
    url: str


class SpaceRead(BaseModel):
    id: str
    count: int

    model_config = ConfigDict(from_attributes=True)


class SpaceSet(BaseModel):
    space_code: str = Field(validation_alias=AliasChoices("space_code", "space_id"))


class CountUpdate(BaseModel):
    mode: str
    value: StrictInt


class UpdateRequest(BaseModel):
    """Externally tagged websocket message: exactly one of the two keys."""

    space_set: Optional[SpaceSet] = Field(default=None, alias="SpaceSet")
    count_update: Optional[CountUpdate] = Field(default=None, alias="CountUpdate")

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def exactly_one_action(self):
        if (self.space_set is None) == (self.count_update is None):
            raise ValueError("expected exactly one of SpaceSet or CountUpdate")
        return self
