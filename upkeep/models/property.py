"""
models/property.py
------------------
Property ORM model.

tenants is a JSON list of user ids with set semantics: writers go through
db.base.union_ids so an id never appears twice.
"""

from typing import Optional

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from upkeep.db.base import Base, TimestampMixin, generate_uuid


class Property(Base, TimestampMixin):
    __tablename__ = "properties"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[Optional[str]] = mapped_column(String(255))
    landlord_id: Mapped[Optional[str]] = mapped_column(String(36), index=True)
    tenants: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    def __repr__(self) -> str:
        return f"<Property id={self.id} name={self.name}>"
