"""Persistence helpers for the device token registry."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from campus_notify.domain.entities import DEFAULT_DEVICE_KIND, DeviceToken
from campus_notify.infrastructure.models import DeviceTokenModel
from campus_notify.utils import (
    ensure_app_timezone,
    now_in_app_naive_datetime,
    shorten_token,
)

logger = logging.getLogger(__name__)


class DeviceTokenRepository:
    """Provide registry reads and writes for :class:`DeviceToken` objects.

    Rows are never deleted: deactivation flips ``is_active`` so that the
    registration history is preserved.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, token_id: int) -> DeviceToken | None:
        model = self.session.get(DeviceTokenModel, token_id)
        return self._to_entity(model) if model else None

    def upsert(
        self,
        *,
        token: str,
        owner_id: str,
        tenant_id: str,
        role: str,
        topic: str | None = None,
        device_kind: str | None = None,
    ) -> tuple[DeviceToken, bool]:
        """Insert or update the registration keyed by ``token``.

        Returns the stored entity and whether a new row was created.
        """

        model = self._get_model_by_token(token)
        if model is not None:
            return self._update_registration(
                model,
                owner_id=owner_id,
                tenant_id=tenant_id,
                role=role,
                topic=topic,
                device_kind=device_kind,
            ), False

        model = DeviceTokenModel(
            token=token,
            owner_id=owner_id,
            tenant_id=tenant_id,
            role=role,
            topic=topic,
            device_kind=device_kind or DEFAULT_DEVICE_KIND,
            is_active=True,
        )
        self.session.add(model)
        try:
            self.session.commit()
        except IntegrityError:
            # Another registration for the same token won the insert race.
            self.session.rollback()
            existing = self._get_model_by_token(token)
            if existing is None:
                raise
            logger.info(
                "Concurrent registration detected for token %s", shorten_token(token)
            )
            return self._update_registration(
                existing,
                owner_id=owner_id,
                tenant_id=tenant_id,
                role=role,
                topic=topic,
                device_kind=device_kind,
            ), False
        self.session.refresh(model)
        return self._to_entity(model), True

    def set_active(self, token_id: int, is_active: bool) -> DeviceToken | None:
        model = self.session.get(DeviceTokenModel, token_id)
        if model is None:
            return None
        model.is_active = is_active
        model.updated_at = now_in_app_naive_datetime()
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def deactivate_many(self, token_ids: Iterable[int]) -> list[DeviceToken]:
        """Deactivate the active rows among ``token_ids`` and return them."""

        ids = sorted({token_id for token_id in token_ids if token_id is not None})
        if not ids:
            return []
        models = (
            self.session.query(DeviceTokenModel)
            .filter(DeviceTokenModel.id.in_(ids))
            .filter(DeviceTokenModel.is_active.is_(True))
            .all()
        )
        if not models:
            return []
        now = now_in_app_naive_datetime()
        for model in models:
            model.is_active = False
            model.updated_at = now
        self.session.commit()
        return [self._to_entity(model) for model in models]

    def list(
        self,
        *,
        tenant_id: str | None = None,
        owner_id: str | None = None,
        role: str | None = None,
        topic: str | None = None,
        is_active: bool | None = True,
        limit: int | None = 500,
    ) -> Sequence[DeviceToken]:
        query = self.session.query(DeviceTokenModel)
        if tenant_id is not None:
            query = query.filter(DeviceTokenModel.tenant_id == tenant_id)
        if owner_id is not None:
            query = query.filter(DeviceTokenModel.owner_id == owner_id)
        if role is not None:
            query = query.filter(DeviceTokenModel.role == role)
        if topic is not None:
            query = query.filter(DeviceTokenModel.topic == topic)
        if is_active is not None:
            query = query.filter(DeviceTokenModel.is_active.is_(is_active))
        query = query.order_by(DeviceTokenModel.id.asc())
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def list_active_for_owner(self, owner_id: str) -> Sequence[DeviceToken]:
        query = self._active().filter(DeviceTokenModel.owner_id == owner_id)
        return self._ordered(query)

    def list_active_for_owners(
        self, owner_ids: Iterable[str], *, tenant_id: str | None = None
    ) -> Sequence[DeviceToken]:
        ids = sorted({owner_id for owner_id in owner_ids if owner_id})
        if not ids:
            return []
        query = self._active().filter(DeviceTokenModel.owner_id.in_(ids))
        if tenant_id is not None:
            query = query.filter(DeviceTokenModel.tenant_id == tenant_id)
        return self._ordered(query)

    def list_active_for_role(self, tenant_id: str, role: str) -> Sequence[DeviceToken]:
        query = (
            self._active()
            .filter(DeviceTokenModel.tenant_id == tenant_id)
            .filter(DeviceTokenModel.role == role)
        )
        return self._ordered(query)

    def list_active_for_tenant(self, tenant_id: str) -> Sequence[DeviceToken]:
        query = self._active().filter(DeviceTokenModel.tenant_id == tenant_id)
        return self._ordered(query)

    def list_active_for_topics(self, topics: Iterable[str]) -> Sequence[DeviceToken]:
        names = [topic for topic in dict.fromkeys(topics) if topic]
        if not names:
            return []
        query = self._active().filter(DeviceTokenModel.topic.in_(names))
        return self._ordered(query)

    def _update_registration(
        self,
        model: DeviceTokenModel,
        *,
        owner_id: str,
        tenant_id: str,
        role: str,
        topic: str | None,
        device_kind: str | None,
    ) -> DeviceToken:
        model.owner_id = owner_id
        model.tenant_id = tenant_id
        model.role = role
        model.topic = topic or model.topic
        model.device_kind = device_kind or model.device_kind
        model.is_active = True
        model.updated_at = now_in_app_naive_datetime()
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def _get_model_by_token(self, token: str) -> DeviceTokenModel | None:
        return (
            self.session.query(DeviceTokenModel)
            .filter(DeviceTokenModel.token == token)
            .one_or_none()
        )

    def _active(self) -> Query:
        return self.session.query(DeviceTokenModel).filter(
            DeviceTokenModel.is_active.is_(True)
        )

    def _ordered(self, query: Query) -> list[DeviceToken]:
        return [
            self._to_entity(model)
            for model in query.order_by(DeviceTokenModel.id.asc()).all()
        ]

    @staticmethod
    def _to_entity(model: DeviceTokenModel) -> DeviceToken:
        return DeviceToken(
            id=model.id,
            owner_id=model.owner_id,
            tenant_id=model.tenant_id,
            role=model.role,
            token=model.token,
            topic=model.topic,
            device_kind=model.device_kind,
            is_active=bool(model.is_active),
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
        )


__all__ = ["DeviceTokenRepository"]
