"""
db/base.py
----------
Declarative base and shared mixins.

TimestampMixin:  Adds created_at / updated_at columns to any model.
generate_uuid:   Opaque string ids for every document-style table.
union_ids:       Set-union for JSON id-list columns (tenants, contractors).
"""

import uuid
from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


class TimestampMixin:
    """Adds server-side created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


def generate_uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def union_ids(current: Iterable[str] | None, *ids: str) -> list[str]:
    """
    Return a new list with ids appended unless already present.

    Always returns a fresh list: JSON columns only register a change when
    the attribute is reassigned, not when the existing list is mutated.
    """
    result = list(current or [])
    for item in ids:
        if item not in result:
            result.append(item)
    return result
