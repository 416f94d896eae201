"""
models/invite.py
----------------
Tenant invite ORM model.

State machine:

    pending ──accept──▶ accepted
       │
       └────reject───▶ declined

accepted and declined are terminal. can_transition() is the single place
that encodes this; services check it before every write.

landlord_name / property_name are display snapshots taken at send time
and may go stale.
"""

from datetime import datetime
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from upkeep.db.base import Base, TimestampMixin, generate_uuid


class InviteStatus(str, PyEnum):
    pending = "pending"
    accepted = "accepted"
    declined = "declined"


_TRANSITIONS = {
    InviteStatus.pending: {InviteStatus.accepted, InviteStatus.declined},
    InviteStatus.accepted: set(),
    InviteStatus.declined: set(),
}


def can_transition(current: str, target: InviteStatus) -> bool:
    try:
        return target in _TRANSITIONS[InviteStatus(current)]
    except ValueError:
        return False


class Invite(Base, TimestampMixin):
    __tablename__ = "invites"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    landlord_id: Mapped[Optional[str]] = mapped_column(String(36), index=True)
    landlord_name: Mapped[Optional[str]] = mapped_column(String(255))
    property_id: Mapped[Optional[str]] = mapped_column(String(36), index=True)
    property_name: Mapped[Optional[str]] = mapped_column(String(255))
    unit_number: Mapped[Optional[str]] = mapped_column(String(50))
    # Stored lower-cased at creation
    tenant_email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=InviteStatus.pending.value, index=True
    )
    accepted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    rejected_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    def __repr__(self) -> str:
        return f"<Invite id={self.id} email={self.tenant_email} status={self.status}>"
