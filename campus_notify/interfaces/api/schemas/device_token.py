"""Schemas for device token registry endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

TokenRole = Literal["student", "teacher", "school_admin", "parent"]
DeviceKind = Literal["android", "ios", "web"]


class DeviceTokenRegister(BaseModel):
    """Payload sent by a client installation to register its push token."""

    model_config = ConfigDict(extra="forbid")

    token: str = Field(..., min_length=1, max_length=512)
    owner_id: str = Field(..., min_length=1, max_length=64)
    tenant_id: str = Field(..., min_length=1, max_length=64)
    role: TokenRole
    topic: str | None = Field(default=None, max_length=255)
    device_kind: DeviceKind | None = None


class DeviceTokenStatusUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    is_active: bool


class DeviceTokenRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: str
    tenant_id: str
    role: str
    token: str
    topic: str | None
    device_kind: str
    is_active: bool
    created_at: datetime | None
    updated_at: datetime | None


class DeviceTokenRegistrationResponse(BaseModel):
    device_token: DeviceTokenRead
    created: bool
    subscribed: bool = Field(
        default=False, description="Whether the token was subscribed to its topic"
    )


class TopicSubscriptionResponse(BaseModel):
    token_id: int
    topic: str
    subscribed: bool
    changed: bool = Field(
        default=False, description="Whether the provider accepted the change"
    )


class TenantResubscribeResponse(BaseModel):
    tenant_id: str
    topic: str
    token_count: int
    subscribed_count: int


__all__ = [
    "DeviceTokenRead",
    "DeviceTokenRegister",
    "DeviceTokenRegistrationResponse",
    "DeviceTokenStatusUpdate",
    "TenantResubscribeResponse",
    "TopicSubscriptionResponse",
]
