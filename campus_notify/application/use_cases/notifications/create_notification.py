"""Use case for creating notifications."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from campus_notify.domain.entities import Notification, NotificationKind
from campus_notify.infrastructure.repositories import NotificationRepository
from campus_notify.utils import ensure_app_timezone, now_in_app_timezone
from .validators import validate_target


def create_notification(
    session: Session,
    *,
    kind: NotificationKind | str,
    tenant_id: str,
    body: str,
    title: str | None = None,
    owner_id: str | None = None,
    class_id: str | None = None,
    role: str | None = None,
    schedule_at: datetime | None = None,
    created_by: str | None = None,
    data: Mapping[str, Any] | None = None,
) -> Notification:
    """Persist a new pending notification."""

    target = validate_target(
        kind,
        tenant_id=tenant_id,
        owner_id=owner_id,
        class_id=class_id,
        role=role,
    )
    body = (body or "").strip()
    if not body:
        raise ValueError("El mensaje de la notificación es obligatorio")

    entity = Notification(
        id=None,
        kind=target.kind,
        tenant_id=target.tenant_id,
        title=(title or "").strip(),
        body=body,
        owner_id=target.owner_id,
        class_id=target.class_id,
        role=target.role,
        schedule_at=ensure_app_timezone(schedule_at),
        issued_at=None,
        created_by=created_by,
        created_at=now_in_app_timezone(),
        data={
            str(key): str(value)
            for key, value in (data or {}).items()
            if value is not None
        },
    )
    return NotificationRepository(session).create(entity)
