"""
models/ticket.py
----------------
Maintenance ticket ORM model.

category and urgency are written together by the classification pipeline
and nowhere else in this core. The table-level constraints make the
invariant structural: both NULL, or both set with urgency in [1, 5].
"""

from datetime import datetime
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from upkeep.db.base import Base, TimestampMixin, generate_uuid


class TicketStatus(str, PyEnum):
    pending_classification = "pending_classification"
    ready_to_dispatch = "ready_to_dispatch"
    classification_failed = "classification_failed"


class TicketCategory(str, PyEnum):
    plumbing = "plumbing"
    electrical = "electrical"
    hvac = "hvac"
    structural = "structural"
    appliance = "appliance"
    general = "general"


URGENCY_MIN = 1
URGENCY_MAX = 5


class Ticket(Base, TimestampMixin):
    __tablename__ = "tickets"
    __table_args__ = (
        CheckConstraint(
            f"urgency IS NULL OR (urgency >= {URGENCY_MIN} AND urgency <= {URGENCY_MAX})",
            name="ck_tickets_urgency_range",
        ),
        CheckConstraint(
            "(category IS NULL AND urgency IS NULL) "
            "OR (category IS NOT NULL AND urgency IS NOT NULL)",
            name="ck_tickets_classified_pair",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    issue_title: Mapped[Optional[str]] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(20))
    urgency: Mapped[Optional[int]] = mapped_column(Integer)
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=TicketStatus.pending_classification.value,
        index=True,
    )
    classification_error: Mapped[Optional[str]] = mapped_column(Text)
    classified_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    submitted_by: Mapped[Optional[str]] = mapped_column(String(36), index=True)
    property_id: Mapped[Optional[str]] = mapped_column(String(36), index=True)

    def __repr__(self) -> str:
        return f"<Ticket id={self.id} status={self.status}>"
