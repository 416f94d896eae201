"""
api/routes/tickets.py
---------------------
Maintenance ticket endpoints.

POST /tickets              — Submit a ticket; classification runs in the background.
GET  /tickets/{ticket_id}  — Read a ticket (submitter or property landlord).
"""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from upkeep.db.session import get_db
from upkeep.dependencies import AuthenticatedCaller, get_current_caller
from upkeep.schemas.ticket import TicketCreate, TicketRead
from upkeep.services.classification_service import classify_ticket
from upkeep.services.ticket_service import TicketService

router = APIRouter(prefix="/tickets", tags=["Tickets"])


@router.post(
    "",
    response_model=TicketRead,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a maintenance ticket",
)
async def submit_ticket(
    body: TicketCreate,
    background_tasks: BackgroundTasks,
    db: Annotated[AsyncSession, Depends(get_db)],
    caller: Annotated[AuthenticatedCaller, Depends(get_current_caller)],
) -> TicketRead:
    """
    Store the ticket as pending_classification and emit the
    "ticket created" event. The response does not wait for classification;
    poll GET /tickets/{id} for the outcome.
    """
    ticket = await TicketService.create_ticket(db, body, caller)
    # The classifier reads the ticket from its own session
    await db.commit()
    background_tasks.add_task(classify_ticket, ticket.id)
    return TicketRead.model_validate(ticket)


@router.get(
    "/{ticket_id}",
    response_model=TicketRead,
    summary="Get a maintenance ticket",
)
async def get_ticket(
    ticket_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    caller: Annotated[AuthenticatedCaller, Depends(get_current_caller)],
) -> TicketRead:
    ticket = await TicketService.get_ticket(db, ticket_id, caller)
    return TicketRead.model_validate(ticket)
