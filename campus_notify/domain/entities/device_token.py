"""Domain entity representing a registered push address."""

from dataclasses import dataclass
from datetime import datetime

TOKEN_ROLES: tuple[str, ...] = ("student", "teacher", "school_admin", "parent")
DEVICE_KINDS: tuple[str, ...] = ("android", "ios", "web")
DEFAULT_DEVICE_KIND = "android"


@dataclass
class DeviceToken:
    """An opaque per-installation push address and who it belongs to."""

    id: int | None
    owner_id: str
    tenant_id: str
    role: str
    token: str
    topic: str | None
    device_kind: str
    is_active: bool
    created_at: datetime | None
    updated_at: datetime | None


__all__ = ["DEFAULT_DEVICE_KIND", "DEVICE_KINDS", "DeviceToken", "TOKEN_ROLES"]
