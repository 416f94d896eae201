"""
services/classification_service.py
----------------------------------
Ticket classification pipeline.

Runs once per "ticket created" event, with at-least-once delivery assumed:

  1. Re-read the ticket. Anything not in pending_classification is left
     untouched (duplicate delivery, or another run already finished).
  2. Blank description → classification_failed, no external call.
  3. Ask the classifier, then validate its answer strictly:
       - a JSON object with exactly "category" and "urgency"
       - category (lower-cased) in the closed category set
       - urgency a JSON integer in [1, 5]
     Nothing is coerced or defaulted.
  4. Success → category, urgency, ready_to_dispatch, classified_at.
     Failure → classification_failed with a message saying why.

Both terminal writes are a single conditional UPDATE on
status = 'pending_classification', so a run that loses a race never
overwrites another run's result. The failure write is best-effort: if it
fails too, the error is logged and the ticket is left for manual follow-up.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError, field_validator
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from upkeep.core.logging import get_logger
from upkeep.db.base import utcnow
from upkeep.db.session import AsyncSessionLocal
from upkeep.models.ticket import (
    URGENCY_MAX,
    URGENCY_MIN,
    Ticket,
    TicketCategory,
    TicketStatus,
)
from upkeep.services.classifier_service import ClassificationError, classifier_service

logger = get_logger(__name__)

_CATEGORIES = frozenset(c.value for c in TicketCategory)


class ClassificationResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    category: str
    urgency: StrictInt = Field(ge=URGENCY_MIN, le=URGENCY_MAX)

    @field_validator("category")
    @classmethod
    def normalise_category(cls, v: str) -> str:
        value = v.strip().lower()
        if value not in _CATEGORIES:
            raise ValueError(f"unknown category '{v}'")
        return value


def parse_classification(content: str) -> ClassificationResult:
    """
    Parse and validate a raw classifier response.

    Raises:
        ClassificationError: malformed JSON, missing/extra fields, unknown
            category, or an urgency that is not an integer in [1, 5].
    """
    try:
        return ClassificationResult.model_validate_json(content)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'response'}: {err['msg']}"
            for err in exc.errors()
        )
        raise ClassificationError(f"Invalid classification response: {problems}") from exc


async def _record_success(
    db: AsyncSession, ticket_id: str, result: ClassificationResult
) -> bool:
    outcome = await db.execute(
        update(Ticket)
        .where(
            Ticket.id == ticket_id,
            Ticket.status == TicketStatus.pending_classification.value,
        )
        .values(
            category=result.category,
            urgency=result.urgency,
            status=TicketStatus.ready_to_dispatch.value,
            classification_error=None,
            classified_at=utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return outcome.rowcount == 1


async def _record_failure(
    session_factory: async_sessionmaker, ticket_id: str, message: str
) -> bool:
    try:
        async with session_factory() as db:
            outcome = await db.execute(
                update(Ticket)
                .where(
                    Ticket.id == ticket_id,
                    Ticket.status == TicketStatus.pending_classification.value,
                )
                .values(
                    status=TicketStatus.classification_failed.value,
                    classification_error=message,
                )
                .execution_options(synchronize_session=False)
            )
            await db.commit()
            return outcome.rowcount == 1
    except Exception as exc:
        logger.error(
            "Could not record classification failure",
            ticket_id=ticket_id,
            cause=message,
            error=str(exc),
        )
        return False


async def classify_ticket(
    ticket_id: str,
    session_factory: async_sessionmaker = AsyncSessionLocal,
    classifier: Any = None,
) -> Optional[TicketStatus]:
    """
    Handle one "ticket created" event.

    Returns the terminal status this run wrote, or None when the run was a
    no-op (ticket missing, no longer pending, or advanced concurrently).
    Never raises: every failure is recorded on the ticket or logged.
    """
    classifier = classifier or classifier_service

    async with session_factory() as db:
        ticket = await db.get(Ticket, ticket_id)
        if ticket is None:
            logger.warning("Ticket not found for classification", ticket_id=ticket_id)
            return None
        if ticket.status != TicketStatus.pending_classification.value:
            logger.info(
                "Ticket already processed, skipping",
                ticket_id=ticket_id,
                status=ticket.status,
            )
            return None
        description = ticket.description or ""
        issue_title = ticket.issue_title

    if not description.strip():
        logger.error("No description found on ticket", ticket_id=ticket_id)
        written = await _record_failure(session_factory, ticket_id, "No description provided")
        return TicketStatus.classification_failed if written else None

    logger.info("Classifying ticket", ticket_id=ticket_id)
    try:
        raw = await classifier.classify(description, issue_title, ticket_id=ticket_id)
        result = parse_classification(raw)
        async with session_factory() as db:
            written = await _record_success(db, ticket_id, result)
    except Exception as exc:
        message = (
            str(exc)
            if isinstance(exc, ClassificationError)
            else f"Failed to classify issue: {exc}"
        )
        logger.error("Ticket classification failed", ticket_id=ticket_id, error=message)
        written = await _record_failure(session_factory, ticket_id, message)
        return TicketStatus.classification_failed if written else None

    if not written:
        logger.info("Ticket advanced concurrently, result discarded", ticket_id=ticket_id)
        return None

    logger.info(
        "Ticket classified",
        ticket_id=ticket_id,
        category=result.category,
        urgency=result.urgency,
    )
    return TicketStatus.ready_to_dispatch


async def classify_pending(
    session_factory: async_sessionmaker = AsyncSessionLocal,
    classifier: Any = None,
    limit: int = 100,
) -> int:
    """
    Re-deliver the "ticket created" event for tickets still pending.

    Safe to run at any time: classify_ticket skips anything that has moved
    on. Returns the number of tickets handed to the handler.
    """
    async with session_factory() as db:
        result = await db.execute(
            select(Ticket.id)
            .where(Ticket.status == TicketStatus.pending_classification.value)
            .order_by(Ticket.created_at)
            .limit(limit)
        )
        ticket_ids = list(result.scalars().all())

    for ticket_id in ticket_ids:
        await classify_ticket(ticket_id, session_factory=session_factory, classifier=classifier)

    logger.info("Pending tickets re-delivered", count=len(ticket_ids))
    return len(ticket_ids)
