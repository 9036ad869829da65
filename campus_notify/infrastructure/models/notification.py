"""SQLAlchemy model for persisted notifications."""

from sqlalchemy import Column, DateTime, Integer, JSON, String, Text

from campus_notify.infrastructure.database import Base
from campus_notify.utils import now_in_app_naive_datetime


class NotificationModel(Base):
    """Database representation for logical notifications."""

    __tablename__ = "notification"

    id = Column(Integer, primary_key=True, index=True)
    kind = Column(String(20), nullable=False)
    tenant_id = Column(String(64), nullable=False, index=True)
    owner_id = Column(String(64), nullable=True)
    class_id = Column(String(64), nullable=True)
    role = Column(String(32), nullable=True)
    title = Column(String(120), nullable=False, default="")
    body = Column(Text, nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    schedule_at = Column(DateTime(), nullable=True, index=True)
    issued_at = Column(DateTime(), nullable=True, index=True)
    created_by = Column(String(64), nullable=True)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    last_delivery = Column(JSON, nullable=True)


__all__ = ["NotificationModel"]
