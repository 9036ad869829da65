"""Domain entity linking a class to one of its recipients."""

from dataclasses import dataclass


@dataclass
class ClassMember:
    """Membership row maintained by the class management service."""

    id: int | None
    tenant_id: str
    class_id: str
    owner_id: str


__all__ = ["ClassMember"]
