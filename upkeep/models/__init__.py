"""
models/__init__.py
------------------
Re-export all models so create_tables.py (and any migration tooling) can
import Base and discover all tables via a single import:

    from upkeep.models import Base
"""

from upkeep.db.base import Base
from upkeep.models.invite import Invite, InviteStatus
from upkeep.models.landlord_profile import LandlordProfile
from upkeep.models.property import Property
from upkeep.models.ticket import Ticket, TicketCategory, TicketStatus
from upkeep.models.user import User, UserRole

__all__ = [
    "Base",
    "Invite",
    "InviteStatus",
    "LandlordProfile",
    "Property",
    "Ticket",
    "TicketCategory",
    "TicketStatus",
    "User",
    "UserRole",
]
