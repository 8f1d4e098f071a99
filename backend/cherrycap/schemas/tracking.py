"""Tracking snippet payloads.

Field names follow the snippet's camelCase wire format (``siteId``,
``sessionId``...); attributes are snake_case.
"""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class TrackingType(StrEnum):
    SESSION = "session"
    PAGEVIEW = "pageview"
    PERFORMANCE = "performance"
    EVENT = "event"
    END = "end"


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SessionData(_Payload):
    site_id: str = Field(..., alias="siteId", min_length=1, max_length=64)
    session_id: str = Field(..., alias="sessionId", min_length=1, max_length=255)
    visitor_id: str = Field(..., alias="visitorId", min_length=1, max_length=255)
    device: str = Field("desktop", max_length=32)
    browser: str = Field("unknown", max_length=64)
    os: str = Field("unknown", max_length=64)
    country: str | None = Field(None, max_length=64)
    referrer: str | None = Field(None, max_length=2048)
    referrer_type: str | None = Field(None, alias="referrerType", max_length=32)

    @field_validator("device", "browser", "os", mode="before")
    @classmethod
    def fill_blank_client_info(cls, v: Any, info: ValidationInfo) -> Any:
        if v:
            return v
        return "desktop" if info.field_name == "device" else "unknown"


class PageViewData(_Payload):
    site_id: str = Field(..., alias="siteId", min_length=1, max_length=64)
    session_id: str = Field(..., alias="sessionId", min_length=1, max_length=255)
    path: str = Field(..., min_length=1, max_length=2048)
    referrer: str | None = Field(None, max_length=2048)
    utm_source: str | None = Field(None, alias="utmSource", max_length=255)
    utm_medium: str | None = Field(None, alias="utmMedium", max_length=255)
    utm_campaign: str | None = Field(None, alias="utmCampaign", max_length=255)


class PerformanceData(_Payload):
    site_id: str = Field(..., alias="siteId", min_length=1, max_length=64)
    session_id: str = Field(..., alias="sessionId", min_length=1, max_length=255)
    path: str = Field(..., min_length=1, max_length=2048)
    load_time: float | None = Field(None, alias="loadTime")
    ttfb: float | None = None
    fcp: float | None = None
    lcp: float | None = None
    fid: float | None = None
    cls: float | None = None


class EventData(_Payload):
    site_id: str = Field(..., alias="siteId", min_length=1, max_length=64)
    session_id: str = Field(..., alias="sessionId", min_length=1, max_length=255)
    name: str = Field(..., min_length=1, max_length=255)
    properties: Any = None


class EndSessionData(_Payload):
    session_id: str = Field(..., alias="sessionId", min_length=1, max_length=255)


class TrackResult(BaseModel):
    """Outcome of a tracking mutation, returned to the snippet verbatim."""

    success: bool
    error: str | None = None
    is_new: bool | None = Field(None, serialization_alias="isNew")

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
