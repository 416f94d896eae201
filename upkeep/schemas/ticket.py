"""
schemas/ticket.py
-----------------
Pydantic models for maintenance ticket submission and reads.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from upkeep.schemas.base import CamelModel


class TicketCreate(CamelModel):
    issue_title: Optional[str] = Field(
        default=None,
        max_length=255,
        examples=["Leaky faucet"],
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=8000,
        examples=["Kitchen faucet won't stop dripping"],
        description="Free-text description sent to the classifier",
    )

    @field_validator("description")
    @classmethod
    def require_text(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("description must not be blank")
        return v

    @field_validator("issue_title")
    @classmethod
    def strip_title(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class TicketRead(CamelModel):
    id: str
    issue_title: Optional[str] = None
    description: str
    category: Optional[str] = None
    urgency: Optional[int] = None
    status: str
    classification_error: Optional[str] = None
    classified_at: Optional[datetime] = None
    submitted_by: Optional[str] = None
    property_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
