"""Domain entity representing a logical notification."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class NotificationKind(str, Enum):
    """Addressing modes supported by the delivery engine."""

    DIRECT = "direct"
    CLASS = "class"
    ROLE = "role"
    ANNOUNCEMENT = "announcement"


DEFAULT_TITLES: dict[NotificationKind, str] = {
    NotificationKind.DIRECT: "Direct Notification",
    NotificationKind.CLASS: "Class Notification",
    NotificationKind.ROLE: "Role Notification",
    NotificationKind.ANNOUNCEMENT: "School Announcement",
}


@dataclass(frozen=True)
class NotificationMessage:
    """Title and body rendered on the device."""

    title: str
    body: str


@dataclass
class Notification:
    """A message addressed to a user, a class, a role or a whole tenant.

    Only the target field matching ``kind`` is meaningful: ``owner_id`` for
    direct notifications, ``class_id`` for class notifications and ``role`` for
    role notifications. Announcements are addressed by ``tenant_id`` alone.
    """

    id: int | None
    kind: NotificationKind
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
    data: dict[str, str] = field(default_factory=dict)
    last_delivery: dict[str, Any] | None = None

    @property
    def message(self) -> NotificationMessage:
        title = (self.title or "").strip() or DEFAULT_TITLES[self.kind]
        return NotificationMessage(title=title, body=self.body)


__all__ = [
    "DEFAULT_TITLES",
    "Notification",
    "NotificationKind",
    "NotificationMessage",
]
