from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ContentType(str, Enum):
    MOVIE = "movie"
    SERIES = "tv_series"


class ActionType(str, Enum):
    VIEW = "VIEW"
    CLICK = "CLICK"
    PLAY = "PLAY"
    COMPLETE = "COMPLETE"


class DeviceType(str, Enum):
    MOBILE = "mobile"
    DESKTOP = "desktop"
    UNKNOWN = "unknown"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TrackEventRequest(CamelModel):
    """Content interaction reported by a client"""
    content_id: str = Field(..., min_length=1, max_length=50)
    content_type: ContentType
    action_type: ActionType
    content_title: Optional[str] = Field(None, max_length=255)
    duration: Optional[int] = Field(None, ge=0)  # seconds watched
    user_id: Optional[int] = None
    ip_address: Optional[str] = Field(None, max_length=100)
    user_agent: Optional[str] = Field(None, max_length=512)
    country: Optional[str] = Field(None, max_length=50)
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("content_type", mode="before")
    @classmethod
    def accept_series_alias(cls, value):
        if isinstance(value, str) and value.lower() == "series":
            return ContentType.SERIES
        return value

    @field_validator("action_type", mode="before")
    @classmethod
    def upper_action(cls, value):
        if isinstance(value, str):
            return value.upper()
        return value


class EventDraft(CamelModel):
    """Event ready to be appended to the log; id and created_at not yet assigned"""
    model_config = ConfigDict(frozen=True)

    content_id: str
    content_type: ContentType
    action_type: ActionType
    content_title: Optional[str] = None
    duration: Optional[int] = None
    user_id: Optional[int] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    device_type: DeviceType
    country: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class EventRecord(EventDraft):
    """Immutable entry of the view_analytics log"""
    id: int
    created_at: datetime
