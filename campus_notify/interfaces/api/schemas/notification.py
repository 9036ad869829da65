"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

NotificationKindLiteral = Literal["direct", "class", "role", "announcement"]


class NotificationCreate(BaseModel):
    """Payload used to create (and usually send) a notification."""

    model_config = ConfigDict(extra="forbid")

    kind: NotificationKindLiteral
    tenant_id: str = Field(..., min_length=1, max_length=64)
    title: str | None = Field(default=None, max_length=255)
    body: str = Field(..., min_length=1)
    owner_id: str | None = Field(default=None, max_length=64)
    class_id: str | None = Field(default=None, max_length=64)
    role: str | None = Field(default=None, max_length=32)
    schedule_at: datetime | None = None
    data: dict[str, str] = Field(default_factory=dict)
    send_immediately: bool = Field(
        default=False,
        description="Dispatch right away even when 'schedule_at' is set",
    )


class NotificationRead(BaseModel):
    """Representation of a stored notification."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    kind: NotificationKindLiteral
    tenant_id: str
    title: str
    body: str
    owner_id: str | None = None
    class_id: str | None = None
    role: str | None = None
    schedule_at: datetime | None = None
    issued_at: datetime | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    data: dict[str, str] = Field(default_factory=dict)
    last_delivery: dict[str, Any] | None = None


class DeliveryAttemptRead(BaseModel):
    channel: Literal["token_list", "topic"]
    target: str
    recipients: int
    success_count: int
    failure_count: int
    unconfirmed_count: int = 0
    empty: bool


class DeliveryReportRead(BaseModel):
    """Outcome of one dispatch, including every channel tried."""

    notification_id: int | None
    channel_attempted: Literal["token_list", "topic"] | None
    success_count: int
    failure_count: int
    fallback_used: bool
    success: bool
    errors: list[str] = Field(default_factory=list)
    attempts: list[DeliveryAttemptRead] = Field(default_factory=list)


class NotificationCreateResponse(BaseModel):
    notification: NotificationRead
    delivery: DeliveryReportRead | None = None


class AudienceRead(BaseModel):
    """Summary of the recipients a dispatch would target."""

    channel: Literal["token_list", "topic"]
    label: str
    token_count: int
    topic: str | None = None


__all__ = [
    "AudienceRead",
    "DeliveryAttemptRead",
    "DeliveryReportRead",
    "NotificationCreate",
    "NotificationCreateResponse",
    "NotificationRead",
]
