"""Request/response schemas for tenant administration."""

import ipaddress
import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from arbiter.models.enums import ActorRole


class BusinessCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr


class BusinessResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str
    is_active: bool
    created_at: datetime


class ProfileCreate(BaseModel):
    email: EmailStr


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    business_id: uuid.UUID
    created_at: datetime


class WhitelistedIpCreate(BaseModel):
    ip_address: str = Field(..., max_length=45)
    description: str | None = Field(None, max_length=255)

    @field_validator("ip_address")
    @classmethod
    def _valid_ip(cls, value: str) -> str:
        try:
            ipaddress.ip_address(value)
        except ValueError as exc:
            raise ValueError(f"'{value}' is not a valid IP address") from exc
        return value


class ApiKeyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    role: ActorRole = ActorRole.USER
    business_id: uuid.UUID | None = None
    whitelisted_ips: list[WhitelistedIpCreate] = Field(default_factory=list)


class WhitelistedIpResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    ip_address: str
    description: str | None = None


class ApiKeyResponse(BaseModel):
    """Returned once on creation; the key is not retrievable afterwards."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    key: str
    name: str
    email: str
    role: ActorRole
    business_id: uuid.UUID | None = None
    is_active: bool
    whitelisted_ips: list[WhitelistedIpResponse] = []
