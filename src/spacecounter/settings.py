from typing import Optional

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict

from spacecounter.utils import is_valid_space_code


class Settings(BaseSettings):
    # === General ===
    log_level: str = Field(default="INFO", validation_alias="SPACECOUNTER_LOG_LEVEL")

    # === Server ===
    host: str = Field(default="0.0.0.0", validation_alias="SPACECOUNTER_HOST")
    port: int = Field(default=8000, validation_alias="SPACECOUNTER_PORT")
    public_ws_base: str = Field(
        default="ws://0.0.0.0:8000", validation_alias="SPACECOUNTER_PUBLIC_WS_BASE"
    )
    cors_allow_origins: list[str] = Field(
        default=["*"], validation_alias="SPACECOUNTER_CORS_ALLOW_ORIGINS"
    )

    # === Spaces ===
    # When False, POST /register may omit space_code and the connection starts
    # in default_space_code (or in no space until its first SpaceSet).
    space_code_required: bool = Field(
        default=False, validation_alias="SPACECOUNTER_SPACE_CODE_REQUIRED"
    )
    default_space_code: Optional[str] = Field(
        default=None, validation_alias="SPACECOUNTER_DEFAULT_SPACE_CODE"
    )
    reject_unknown_modes: bool = Field(
        default=False, validation_alias="SPACECOUNTER_REJECT_UNKNOWN_MODES"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator("default_space_code", mode="before")
    @classmethod
    def check_default_space_code(cls, v: Optional[str]) -> Optional[str]:
        if v in (None, ""):
            return None
        if not is_valid_space_code(v):
            raise ValueError("default_space_code must be 4-6 upper-case letters")
        return v

    @field_validator("public_ws_base")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


settings = Settings()
