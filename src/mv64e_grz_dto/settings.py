from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CodecSettings(BaseSettings):
    """Options for rendering metadata documents, settable via GRZ_DTO_* environment variables."""

    model_config = SettingsConfigDict(
        extra="ignore",
        validate_assignment=True,
        env_prefix="grz_dto_",
    )

    indent: int | None = Field(default=None, ge=0)
    """Number of spaces to indent nested structures by; compact output if unset."""
