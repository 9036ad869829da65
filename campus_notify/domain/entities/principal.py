"""Authenticated caller as described by a verified bearer token."""

from dataclasses import dataclass

SUPER_ADMIN_ROLE = "super_admin"
SCHOOL_ADMIN_ROLE = "school_admin"
TEACHER_ROLE = "teacher"
SERVICE_ROLE = "service"


@dataclass(frozen=True)
class Principal:
    subject: str
    role: str
    tenant_id: str | None

    def is_super_admin(self) -> bool:
        return self.role == SUPER_ADMIN_ROLE

    def can_access_tenant(self, tenant_id: str | None) -> bool:
        """Return ``True`` when the caller may act inside ``tenant_id``."""

        if self.is_super_admin():
            return True
        return tenant_id is not None and tenant_id == self.tenant_id


__all__ = [
    "Principal",
    "SCHOOL_ADMIN_ROLE",
    "SERVICE_ROLE",
    "SUPER_ADMIN_ROLE",
    "TEACHER_ROLE",
]
