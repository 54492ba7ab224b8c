from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from config import APP_VERSION


class SettingsSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    timezone: str = "UTC"
    weight_unit: str = "kg"
    recent_sessions: int = 5
    app_version: str = APP_VERSION

    @field_validator("timezone")
    @classmethod
    def _known_zone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"unknown time zone: {value}")
        return value

    @field_validator("weight_unit")
    @classmethod
    def _unit(cls, value: str) -> str:
        if value not in {"kg", "lb"}:
            raise ValueError("weight_unit must be kg or lb")
        return value

    @field_validator("recent_sessions")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("recent_sessions must be at least 1")
        return value

def validate_settings(data: dict) -> None:
    try:
        SettingsSchema(**data)
    except ValidationError as e:
        raise ValueError(str(e))
