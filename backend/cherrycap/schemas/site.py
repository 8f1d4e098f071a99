"""Site registry request/response schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from cherrycap.services.sites import normalize_domain


class SiteCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    domain: str = Field(..., min_length=1, max_length=255)

    @field_validator("domain")
    @classmethod
    def validate_domain(cls, v: str) -> str:
        normalized = normalize_domain(v)
        if not normalized:
            raise ValueError("Domain must not be empty")
        return normalized


class SiteUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    domain: str | None = Field(None, min_length=1, max_length=255)
    is_active: bool | None = None

    @field_validator("domain")
    @classmethod
    def validate_domain(cls, v: str | None) -> str | None:
        if v is None:
            return v
        normalized = normalize_domain(v)
        if not normalized:
            raise ValueError("Domain must not be empty")
        return normalized


class SiteResponse(BaseModel):
    id: uuid.UUID
    site_id: str
    name: str
    domain: str
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class SiteValidation(BaseModel):
    """Public lookup result; ``domain``/``isActive`` only present when valid."""

    valid: bool
    domain: str | None = None
    is_active: bool | None = Field(None, serialization_alias="isActive")
