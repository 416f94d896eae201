"""
models/user.py
--------------
User profile ORM model.

Identity (uid, email) is owned by the platform's auth layer; this table holds
the profile fields the relationship workflow reads and writes.

Tenant linkage:
  - property_id / landlord_id are NULL while the tenant is unlinked.
  - A tenant is linked to at most one property at a time. Only
    accept-invite sets these columns, and only when both are NULL.
"""

from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from upkeep.db.base import Base, TimestampMixin, generate_uuid


class UserRole(str, PyEnum):
    tenant = "tenant"
    landlord = "landlord"
    contractor = "contractor"


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    email: Mapped[str] = mapped_column(
        String(320), unique=True, nullable=False, index=True
    )
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UserRole.tenant.value
    )
    display_name: Mapped[Optional[str]] = mapped_column(String(255))
    first_name: Mapped[Optional[str]] = mapped_column(String(120))

    property_id: Mapped[Optional[str]] = mapped_column(String(36), index=True)
    landlord_id: Mapped[Optional[str]] = mapped_column(String(36), index=True)
    onboarding_complete: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} role={self.role}>"
