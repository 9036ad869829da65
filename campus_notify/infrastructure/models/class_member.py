"""SQLAlchemy model for class rosters."""

from sqlalchemy import Column, Integer, String, UniqueConstraint

from campus_notify.infrastructure.database import Base


class ClassMemberModel(Base):
    """Database representation of a class membership."""

    __tablename__ = "class_member"
    __table_args__ = (
        UniqueConstraint("class_id", "owner_id", name="uq_class_member_owner"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String(64), nullable=False, index=True)
    class_id = Column(String(64), nullable=False, index=True)
    owner_id = Column(String(64), nullable=False, index=True)


__all__ = ["ClassMemberModel"]
