"""Use case for listing registered device tokens."""

from collections.abc import Sequence

from sqlalchemy.orm import Session

from campus_notify.domain.entities import DeviceToken
from campus_notify.infrastructure.repositories import DeviceTokenRepository


def list_device_tokens(
    session: Session,
    *,
    tenant_id: str | None = None,
    owner_id: str | None = None,
    role: str | None = None,
    topic: str | None = None,
    is_active: bool | None = True,
    limit: int | None = 500,
) -> Sequence[DeviceToken]:
    return DeviceTokenRepository(session).list(
        tenant_id=tenant_id,
        owner_id=owner_id,
        role=role,
        topic=topic,
        is_active=is_active,
        limit=limit,
    )
