"""
schemas/invite.py
-----------------
Pydantic models for the tenant invite workflow.

SendInviteRequest fields are deliberately loose: presence and email shape
are checked by InviteService so they surface as invalid-argument errors
rather than schema 422s.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from upkeep.schemas.base import CamelModel


class SendInviteRequest(CamelModel):
    property_id: Optional[str] = Field(default=None, examples=["b6a4..."])
    tenant_email: Optional[str] = Field(default=None, examples=["tenant@example.com"])
    unit_number: Optional[str] = Field(default=None, max_length=50, examples=["2B"])


class InviteActionResponse(CamelModel):
    success: bool = True
    message: str
    invite_id: Optional[str] = None


class InviteRead(CamelModel):
    id: str
    landlord_id: Optional[str] = None
    landlord_name: Optional[str] = None
    property_id: Optional[str] = None
    property_name: Optional[str] = None
    unit_number: Optional[str] = None
    tenant_email: str
    status: str
    created_at: datetime
    accepted_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None


class InviteListResponse(CamelModel):
    total: int
    items: list[InviteRead]
