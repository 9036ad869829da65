"""Persistence helpers for class rosters."""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campus_notify.domain.entities import ClassMember
from campus_notify.infrastructure.models import ClassMemberModel


class ClassMemberRepository:
    """Read and maintain the recipients that belong to a class."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, *, tenant_id: str, class_id: str, owner_id: str) -> ClassMember:
        existing = self._get_model(class_id=class_id, owner_id=owner_id)
        if existing is not None:
            return self._to_entity(existing)

        model = ClassMemberModel(tenant_id=tenant_id, class_id=class_id, owner_id=owner_id)
        self.session.add(model)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            existing = self._get_model(class_id=class_id, owner_id=owner_id)
            if existing is None:
                raise
            return self._to_entity(existing)
        self.session.refresh(model)
        return self._to_entity(model)

    def list_owner_ids(self, class_id: str, *, tenant_id: str | None = None) -> list[str]:
        query = self.session.query(ClassMemberModel.owner_id).filter(
            ClassMemberModel.class_id == class_id
        )
        if tenant_id is not None:
            query = query.filter(ClassMemberModel.tenant_id == tenant_id)
        return [owner_id for (owner_id,) in query.order_by(ClassMemberModel.id.asc()).all()]

    def _get_model(self, *, class_id: str, owner_id: str) -> ClassMemberModel | None:
        return (
            self.session.query(ClassMemberModel)
            .filter(ClassMemberModel.class_id == class_id)
            .filter(ClassMemberModel.owner_id == owner_id)
            .one_or_none()
        )

    @staticmethod
    def _to_entity(model: ClassMemberModel) -> ClassMember:
        return ClassMember(
            id=model.id,
            tenant_id=model.tenant_id,
            class_id=model.class_id,
            owner_id=model.owner_id,
        )


__all__ = ["ClassMemberRepository"]
