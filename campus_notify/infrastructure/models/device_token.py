"""SQLAlchemy model for registered device tokens."""

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String
from sqlalchemy.sql import expression

from campus_notify.infrastructure.database import Base
from campus_notify.utils import now_in_app_naive_datetime


class DeviceTokenModel(Base):
    """Database representation of a push address registration."""

    __tablename__ = "device_token"
    __table_args__ = (
        Index("ix_device_token_tenant_role", "tenant_id", "role"),
        Index("ix_device_token_tenant_topic", "tenant_id", "topic"),
    )

    id = Column(Integer, primary_key=True, index=True)
    token = Column(String(512), nullable=False, unique=True)
    owner_id = Column(String(64), nullable=False, index=True)
    tenant_id = Column(String(64), nullable=False, index=True)
    role = Column(String(32), nullable=False)
    topic = Column(String(128), nullable=True, index=True)
    device_kind = Column(String(16), nullable=False, default="android")
    is_active = Column(
        Boolean,
        nullable=False,
        default=True,
        server_default=expression.true(),
    )
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    updated_at = Column(
        DateTime(),
        nullable=False,
        default=now_in_app_naive_datetime,
        onupdate=now_in_app_naive_datetime,
    )


__all__ = ["DeviceTokenModel"]
