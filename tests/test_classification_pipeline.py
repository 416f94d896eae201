"""Tests for the ticket classification handler."""
import pytest
from sqlalchemy import update

from upkeep.db.session import AsyncSessionLocal
from upkeep.models import Ticket, TicketCategory, TicketStatus
from upkeep.services.classification_service import classify_pending, classify_ticket
from upkeep.services.classifier_service import ClassificationError, ClassifierService


class FakeClassifier:
    """Records calls and answers with a fixed response or error."""

    def __init__(self, response='{"category": "plumbing", "urgency": 3}', error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def classify(self, description, issue_title=None, ticket_id="unknown"):
        self.calls.append({"description": description, "issue_title": issue_title, "ticket_id": ticket_id})
        if self.error is not None:
            raise self.error
        return self.response


async def _ticket(db, description="Kitchen faucet won't stop dripping", **fields) -> Ticket:
    ticket = Ticket(description=description, status=TicketStatus.pending_classification.value, **fields)
    db.add(ticket)
    await db.commit()
    return ticket


async def _reload(db, ticket_id) -> Ticket:
    return await db.get(Ticket, ticket_id, populate_existing=True)


async def test_kitchen_faucet_is_classified_as_plumbing(db):
    ticket = await _ticket(db)

    outcome = await classify_ticket(ticket.id, classifier=ClassifierService())

    assert outcome == TicketStatus.ready_to_dispatch
    stored = await _reload(db, ticket.id)
    assert stored.status == TicketStatus.ready_to_dispatch.value
    assert stored.category == "plumbing"
    assert 1 <= stored.urgency <= 5
    assert stored.classified_at is not None
    assert stored.classification_error is None


async def test_title_and_description_reach_the_classifier(db):
    ticket = await _ticket(db, description="Water pooling under sink", issue_title="Leak")
    fake = FakeClassifier()

    await classify_ticket(ticket.id, classifier=fake)

    assert fake.calls == [
        {"description": "Water pooling under sink", "issue_title": "Leak", "ticket_id": ticket.id}
    ]


async def test_category_is_normalised_to_lowercase(db):
    ticket = await _ticket(db)

    await classify_ticket(ticket.id, classifier=FakeClassifier('{"category": "Electrical", "urgency": 4}'))

    stored = await _reload(db, ticket.id)
    assert stored.category == TicketCategory.electrical.value
    assert stored.urgency == 4


@pytest.mark.parametrize("description", ["", "   ", "\n\t"])
async def test_blank_description_fails_without_external_call(db, description):
    ticket = await _ticket(db, description=description)
    fake = FakeClassifier()

    outcome = await classify_ticket(ticket.id, classifier=fake)

    assert outcome == TicketStatus.classification_failed
    assert fake.calls == []
    stored = await _reload(db, ticket.id)
    assert stored.status == TicketStatus.classification_failed.value
    assert stored.classification_error == "No description provided"
    assert stored.category is None
    assert stored.urgency is None


@pytest.mark.parametrize(
    "response",
    [
        '{"category": "plumbing", "urgency": 9}',
        '{"category": "plumbing", "urgency": "high"}',
        '{"category": "plumbing"}',
        '{"category": "gardening", "urgency": 2}',
        "Sure! It's plumbing, urgency 3.",
    ],
)
async def test_invalid_response_marks_ticket_failed(db, response):
    ticket = await _ticket(db)

    outcome = await classify_ticket(ticket.id, classifier=FakeClassifier(response))

    assert outcome == TicketStatus.classification_failed
    stored = await _reload(db, ticket.id)
    assert stored.status == TicketStatus.classification_failed.value
    assert stored.classification_error.startswith("Invalid classification response")
    assert stored.category is None
    assert stored.urgency is None


async def test_classifier_error_message_is_recorded(db):
    ticket = await _ticket(db)
    fake = FakeClassifier(error=ClassificationError("Classifier call failed: timeout"))

    await classify_ticket(ticket.id, classifier=fake)

    stored = await _reload(db, ticket.id)
    assert stored.status == TicketStatus.classification_failed.value
    assert stored.classification_error == "Classifier call failed: timeout"


async def test_unexpected_error_is_recorded_not_raised(db):
    ticket = await _ticket(db)

    outcome = await classify_ticket(ticket.id, classifier=FakeClassifier(error=RuntimeError("boom")))

    assert outcome == TicketStatus.classification_failed
    stored = await _reload(db, ticket.id)
    assert stored.classification_error == "Failed to classify issue: boom"


@pytest.mark.parametrize("response", ['{"category": "hvac", "urgency": 2}', "garbage"])
async def test_second_run_is_a_no_op(db, response):
    ticket = await _ticket(db)
    fake = FakeClassifier(response)

    first = await classify_ticket(ticket.id, classifier=fake)
    before = await _reload(db, ticket.id)
    snapshot = (before.status, before.category, before.urgency, before.classification_error, before.updated_at)

    second = await classify_ticket(ticket.id, classifier=fake)

    assert first is not None
    assert second is None
    assert len(fake.calls) == 1
    after = await _reload(db, ticket.id)
    assert (after.status, after.category, after.urgency, after.classification_error, after.updated_at) == snapshot

class OvertakenClassifier(FakeClassifier):
    """Another delivery finishes the ticket while this one waits on the classifier."""

    async def classify(self, description, issue_title=None, ticket_id="unknown"):
        async with AsyncSessionLocal() as other:
            await other.execute(
                update(Ticket)
                .where(Ticket.id == ticket_id)
                .values(
                    status=TicketStatus.ready_to_dispatch.value,
                    category=TicketCategory.electrical.value,
                    urgency=5,
                )
            )
            await other.commit()
        return await super().classify(description, issue_title, ticket_id=ticket_id)


@pytest.mark.parametrize(
    "fake",
    [
        OvertakenClassifier('{"category": "plumbing", "urgency": 1}'),
        OvertakenClassifier(error=ClassificationError("Classifier call failed: timeout")),
    ],
)
async def test_concurrent_result_is_kept(db, fake):
    ticket = await _ticket(db)

    outcome = await classify_ticket(ticket.id, classifier=fake)

    assert outcome is None
    stored = await _reload(db, ticket.id)
    assert stored.status == TicketStatus.ready_to_dispatch.value
    assert stored.category == TicketCategory.electrical.value
    assert stored.urgency == 5
    assert stored.classification_error is None



async def test_missing_ticket_is_ignored(db):
    fake = FakeClassifier()
    assert await classify_ticket("does-not-exist", classifier=fake) is None
    assert fake.calls == []


async def test_failed_failure_write_leaves_ticket_pending(db):
    ticket = await _ticket(db)
    uses = {"count": 0}

    def flaky_sessions():
        uses["count"] += 1
        if uses["count"] > 1:
            raise RuntimeError("database unavailable")
        return AsyncSessionLocal()

    outcome = await classify_ticket(
        ticket.id,
        session_factory=flaky_sessions,
        classifier=FakeClassifier(error=RuntimeError("classifier down")),
    )

    assert outcome is None
    stored = await _reload(db, ticket.id)
    assert stored.status == TicketStatus.pending_classification.value
    assert stored.classification_error is None


async def test_classify_pending_only_touches_pending_tickets(db):
    pending = await _ticket(db, description="Furnace making loud noise")
    done = await _ticket(db, description="Old ticket")
    done.status = TicketStatus.ready_to_dispatch.value
    done.category = "general"
    done.urgency = 1
    await db.commit()
    fake = FakeClassifier('{"category": "hvac", "urgency": 3}')

    count = await classify_pending(classifier=fake)

    assert count == 1
    assert [c["ticket_id"] for c in fake.calls] == [pending.id]
    assert (await _reload(db, pending.id)).status == TicketStatus.ready_to_dispatch.value
    assert (await _reload(db, done.id)).category == "general"
