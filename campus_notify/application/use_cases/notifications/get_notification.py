"""Use cases for reading notifications."""

from collections.abc import Sequence

from sqlalchemy.orm import Session

from campus_notify.domain.entities import Notification
from campus_notify.domain.errors import NotificationNotFoundError
from campus_notify.infrastructure.repositories import NotificationRepository


def get_notification(session: Session, notification_id: int) -> Notification:
    notification = NotificationRepository(session).get(notification_id)
    if notification is None:
        msg = f"Notification with id {notification_id} not found"
        raise NotificationNotFoundError(msg)
    return notification


def list_notifications(
    session: Session, *, tenant_id: str, limit: int | None = 50
) -> Sequence[Notification]:
    """Return the newest notifications of ``tenant_id`` first."""

    return NotificationRepository(session).list_for_tenant(tenant_id, limit=limit)
