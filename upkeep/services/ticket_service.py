"""
services/ticket_service.py
--------------------------
Ticket submission and reads.

Submission only stores the ticket in pending_classification. Category and
urgency are never accepted from the client: the classification pipeline is
the only writer of those columns.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from upkeep.core.errors import NotFoundError, PermissionDeniedError
from upkeep.core.logging import get_logger
from upkeep.dependencies import AuthenticatedCaller
from upkeep.models.property import Property
from upkeep.models.ticket import Ticket, TicketStatus
from upkeep.models.user import User
from upkeep.schemas.ticket import TicketCreate

logger = get_logger(__name__)


class TicketService:

    @staticmethod
    async def create_ticket(
        db: AsyncSession,
        data: TicketCreate,
        caller: AuthenticatedCaller,
    ) -> Ticket:
        """
        Persist a new ticket for the caller.

        The ticket is scoped to the caller's linked property when they have
        one; unlinked tenants can still report issues.
        """
        profile = await db.get(User, caller.uid)

        ticket = Ticket(
            issue_title=data.issue_title,
            description=data.description,
            status=TicketStatus.pending_classification.value,
            submitted_by=caller.uid,
            property_id=profile.property_id if profile is not None else None,
        )
        db.add(ticket)
        await db.flush()
        await db.refresh(ticket)

        logger.info(
            "Ticket submitted",
            ticket_id=ticket.id,
            submitted_by=caller.uid,
            property_id=ticket.property_id,
        )
        return ticket

    @staticmethod
    async def get_ticket(
        db: AsyncSession,
        ticket_id: str,
        caller: AuthenticatedCaller,
    ) -> Ticket:
        """Readable by the submitter and by the landlord of the ticket's property."""
        ticket = await db.get(Ticket, ticket_id)
        if ticket is None:
            raise NotFoundError("Ticket not found.")

        if ticket.submitted_by == caller.uid:
            return ticket

        if ticket.property_id:
            prop = await db.get(Property, ticket.property_id)
            if prop is not None and prop.landlord_id == caller.uid:
                return ticket

        raise PermissionDeniedError("You do not have access to this ticket.")
