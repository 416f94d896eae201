"""
models/landlord_profile.py
--------------------------
Landlord profile ORM model. The primary key is the landlord's user id.

invites_sent is an append-only bookkeeping log of invites the landlord has
issued. It is denormalised and may drift from the invites table, which
remains the source of truth for invite state.
"""

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from upkeep.db.base import Base, TimestampMixin


class LandlordProfile(Base, TimestampMixin):
    __tablename__ = "landlord_profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    tenants: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    contractors: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    invites_sent: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)

    def __repr__(self) -> str:
        return f"<LandlordProfile id={self.id} tenants={len(self.tenants or [])}>"
