"""Persistence helpers for notification entities."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from campus_notify.domain.entities import Notification, NotificationKind
from campus_notify.infrastructure.models import NotificationModel
from campus_notify.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)


class NotificationRepository:
    """Provide CRUD operations for :class:`Notification` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, notification_id: int) -> Notification | None:
        model = self.session.get(NotificationModel, notification_id)
        return self._to_entity(model) if model else None

    def list_for_tenant(
        self, tenant_id: str, *, limit: int | None = 50
    ) -> Sequence[Notification]:
        query = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.tenant_id == tenant_id)
            .order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def list_due(
        self,
        now: datetime,
        *,
        tenant_id: str | None = None,
        limit: int | None = 100,
    ) -> Sequence[Notification]:
        """Return pending scheduled notifications whose instant has arrived."""

        query = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.issued_at.is_(None))
            .filter(NotificationModel.schedule_at.is_not(None))
            .filter(NotificationModel.schedule_at <= ensure_app_naive_datetime(now))
        )
        if tenant_id is not None:
            query = query.filter(NotificationModel.tenant_id == tenant_id)
        query = query.order_by(
            NotificationModel.schedule_at.asc(), NotificationModel.id.asc()
        )
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def create(self, notification: Notification) -> Notification:
        model = NotificationModel()
        self._apply_entity_to_model(model, notification, include_creation_fields=True)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def mark_issued(self, notification_id: int, issued_at: datetime) -> Notification:
        model = self._require_model(notification_id)
        model.issued_at = ensure_app_naive_datetime(issued_at)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def record_delivery(
        self, notification_id: int, summary: dict[str, Any]
    ) -> Notification:
        model = self._require_model(notification_id)
        model.last_delivery = summary
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def _require_model(self, notification_id: int) -> NotificationModel:
        model = self.session.get(NotificationModel, notification_id)
        if model is None:
            msg = f"Notification with id {notification_id} not found"
            raise ValueError(msg)
        return model

    @staticmethod
    def _apply_entity_to_model(
        model: NotificationModel,
        notification: Notification,
        *,
        include_creation_fields: bool,
    ) -> None:
        if include_creation_fields:
            model.created_at = ensure_app_naive_datetime(
                notification.created_at or now_in_app_timezone()
            )
            model.created_by = notification.created_by
        model.kind = notification.kind.value
        model.tenant_id = notification.tenant_id
        model.owner_id = notification.owner_id
        model.class_id = notification.class_id
        model.role = notification.role
        model.title = notification.title or ""
        model.body = notification.body
        model.data = dict(notification.data or {})
        model.schedule_at = ensure_app_naive_datetime(notification.schedule_at)
        model.issued_at = ensure_app_naive_datetime(notification.issued_at)
        model.last_delivery = notification.last_delivery

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            kind=NotificationKind(model.kind),
            tenant_id=model.tenant_id,
            title=model.title or "",
            body=model.body,
            owner_id=model.owner_id,
            class_id=model.class_id,
            role=model.role,
            schedule_at=ensure_app_timezone(model.schedule_at),
            issued_at=ensure_app_timezone(model.issued_at),
            created_by=model.created_by,
            created_at=ensure_app_timezone(model.created_at),
            data=dict(model.data or {}),
            last_delivery=model.last_delivery,
        )


__all__ = ["NotificationRepository"]
