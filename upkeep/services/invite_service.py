"""
services/invite_service.py
--------------------------
Tenant ↔ property ↔ landlord relationship workflow.

send-invite   landlord creates a pending invite for a tenant email
accept-invite tenant links their profile to the invite's property
reject-invite tenant declines the invite

Transaction model:
  The caller's session is the transaction. accept/reject read every row
  they depend on with SELECT ... FOR UPDATE, validate, then mutate. Any
  WorkflowError raised here propagates to get_db, which rolls back, so a
  failed operation never leaves a partial write behind. Two concurrent
  accepts of one invite serialise on the invite row lock, and the status
  change itself is a conditional UPDATE on status = 'pending': whichever
  transaction loses sees no pending row and fails with failed-precondition.

Best-effort bookkeeping (display-name snapshots, the landlord's
invitesSent log) runs in its own short-lived session so that a failure
there can never abort or block the main transaction.
"""

import re
from typing import Optional, Type, TypeVar

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from upkeep.core.errors import (
    FailedPreconditionError,
    InternalError,
    InvalidArgumentError,
    NotFoundError,
    PermissionDeniedError,
)
from upkeep.core.logging import get_logger
from upkeep.db.base import Base, union_ids, utcnow
from upkeep.db.session import AsyncSessionLocal
from upkeep.dependencies import AuthenticatedCaller
from upkeep.models.invite import Invite, InviteStatus, can_transition
from upkeep.models.landlord_profile import LandlordProfile
from upkeep.models.property import Property
from upkeep.models.user import User

logger = get_logger(__name__)

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")

DEFAULT_LANDLORD_NAME = "Your Landlord"
DEFAULT_PROPERTY_NAME = "Their Property"

ModelT = TypeVar("ModelT", bound=Base)


async def _get_for_update(
    db: AsyncSession, model: Type[ModelT], row_id: str
) -> Optional[ModelT]:
    result = await db.execute(
        select(model)
        .where(model.id == row_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _claim_invite(
    db: AsyncSession, invite: Invite, target: InviteStatus, **stamps
) -> None:
    """
    Move a pending invite to target with a conditional UPDATE.

    This is the first write of accept/reject. If another transaction got
    there first the UPDATE matches nothing and the operation fails before
    anything else is touched.
    """
    claimed = await db.execute(
        update(Invite)
        .where(Invite.id == invite.id, Invite.status == InviteStatus.pending.value)
        .values(status=target.value, **stamps)
        .execution_options(synchronize_session=False)
    )
    if claimed.rowcount != 1:
        raise FailedPreconditionError("This invitation is no longer pending.")
    await db.refresh(invite)


class InviteService:

    # ── send-invite ──────────────────────────────────────────────────────────

    @staticmethod
    async def send_invite(
        db: AsyncSession,
        caller: AuthenticatedCaller,
        property_id: Optional[str],
        tenant_email: Optional[str],
        unit_number: Optional[str] = None,
        lookup_session_factory: async_sessionmaker = AsyncSessionLocal,
    ) -> Invite:
        """
        Create a pending invite from the calling landlord.

        Raises InvalidArgumentError for a missing property id / email or an
        email that does not look like an address. Delivery to the tenant is
        someone else's job; this only writes the invite row.
        """
        if not property_id or not tenant_email:
            raise InvalidArgumentError("Property ID and Tenant Email are required.")
        tenant_email = tenant_email.strip()
        if not EMAIL_PATTERN.search(tenant_email):
            logger.warning("Invalid tenant email format", email=tenant_email)
            raise InvalidArgumentError("Invalid tenant email format provided.")

        landlord_name, property_name = await InviteService.snapshot_labels(
            lookup_session_factory, caller.uid, property_id
        )

        invite = Invite(
            landlord_id=caller.uid,
            landlord_name=landlord_name,
            property_id=property_id,
            property_name=property_name,
            unit_number=unit_number,
            tenant_email=tenant_email.lower(),
            status=InviteStatus.pending.value,
        )
        db.add(invite)
        await db.flush()
        await db.refresh(invite)

        logger.info(
            "Invite created",
            invite_id=invite.id,
            landlord_id=caller.uid,
            property_id=property_id,
        )
        return invite

    @staticmethod
    async def snapshot_labels(
        session_factory: async_sessionmaker, landlord_id: str, property_id: str
    ) -> tuple[str, str]:
        """
        Look up display labels for the invite. Never raises: any failure
        falls back to the generic placeholders.
        """
        landlord_name = DEFAULT_LANDLORD_NAME
        property_name = DEFAULT_PROPERTY_NAME
        try:
            async with session_factory() as lookup:
                landlord = await lookup.get(User, landlord_id)
                if landlord is not None:
                    landlord_name = landlord.display_name or landlord.first_name or landlord_name
                prop = await lookup.get(Property, property_id)
                if prop is not None:
                    property_name = prop.name or property_name
        except Exception as exc:
            logger.warning(
                "Could not fetch landlord/property name, using defaults",
                landlord_id=landlord_id,
                property_id=property_id,
                error=str(exc),
            )
        return landlord_name, property_name

    @staticmethod
    async def record_sent_invite(
        landlord_id: str,
        entry: dict,
        session_factory: async_sessionmaker = AsyncSessionLocal,
    ) -> bool:
        """
        Append an entry to the landlord's invitesSent log.

        Bookkeeping only: skipped when the landlord has no profile, and
        failures are logged, never raised or retried.
        """
        try:
            async with session_factory() as db:
                profile = await _get_for_update(db, LandlordProfile, landlord_id)
                if profile is None:
                    return False
                profile.invites_sent = [*(profile.invites_sent or []), entry]
                await db.commit()
                return True
        except Exception as exc:
            logger.warning(
                "Could not update landlord invite log",
                landlord_id=landlord_id,
                error=str(exc),
            )
            return False

    # ── accept-invite ────────────────────────────────────────────────────────

    @staticmethod
    async def accept_invite(
        db: AsyncSession, caller: AuthenticatedCaller, invite_id: Optional[str]
    ) -> Invite:
        """
        Link the calling tenant to the invite's property and landlord.

        Order of checks matters and is part of the contract:
          not-found (invite, tenant) → permission-denied (email mismatch)
          → failed-precondition (not pending) → internal (incomplete invite)
          → not-found (property) → idempotency / single-property check.

        All writes are staged on db and committed by the caller as one unit.
        """
        if not invite_id:
            raise InvalidArgumentError("Invite ID is required.")

        logger.info("Tenant attempting to accept invite", tenant_id=caller.uid, invite_id=invite_id)

        invite = await _get_for_update(db, Invite, invite_id)
        tenant = await _get_for_update(db, User, caller.uid)

        if invite is None:
            raise NotFoundError("Invitation not found.")
        if tenant is None:
            raise NotFoundError("Tenant user profile not found.")

        if invite.tenant_email != caller.email:
            logger.warning(
                "Permission denied: invite email does not match caller",
                invite_id=invite_id,
                tenant_id=caller.uid,
            )
            raise PermissionDeniedError("This invitation is not for you.")

        if not can_transition(invite.status, InviteStatus.accepted):
            raise FailedPreconditionError(f"This invitation has already been {invite.status}.")

        property_id = invite.property_id
        landlord_id = invite.landlord_id
        if not property_id or not landlord_id:
            logger.error("Invite is missing propertyId or landlordId", invite_id=invite_id)
            raise InternalError("Invite data is incomplete.")

        prop = await _get_for_update(db, Property, property_id)
        if prop is None:
            logger.error("Property from invite not found", invite_id=invite_id, property_id=property_id)
            raise NotFoundError("The property associated with this invite no longer exists.")

        now = utcnow()

        if tenant.property_id:
            if tenant.property_id != property_id:
                logger.error(
                    "Tenant already linked to a different property",
                    tenant_id=caller.uid,
                    linked_property_id=tenant.property_id,
                    invite_id=invite_id,
                )
                raise FailedPreconditionError("You are already associated with a different property.")

            # Already linked here: close out the invite, leave the links alone.
            await _claim_invite(db, invite, InviteStatus.accepted, accepted_at=now)
            logger.warning(
                "Tenant already linked to property, acceptance is idempotent",
                tenant_id=caller.uid,
                property_id=property_id,
                invite_id=invite_id,
            )
            return invite

        await _claim_invite(db, invite, InviteStatus.accepted, accepted_at=now)

        tenant.property_id = property_id
        tenant.landlord_id = landlord_id
        tenant.onboarding_complete = True

        prop.tenants = union_ids(prop.tenants, tenant.id)

        landlord = await _get_for_update(db, LandlordProfile, landlord_id)
        if landlord is not None:
            landlord.tenants = union_ids(landlord.tenants, tenant.id)

        await db.flush()
        logger.info("Invite accepted", invite_id=invite_id, tenant_id=caller.uid, property_id=property_id)
        return invite

    # ── reject-invite ────────────────────────────────────────────────────────

    @staticmethod
    async def reject_invite(
        db: AsyncSession, caller: AuthenticatedCaller, invite_id: Optional[str]
    ) -> Invite:
        if not invite_id:
            raise InvalidArgumentError("Invite ID is required.")

        logger.info("Tenant attempting to reject invite", tenant_id=caller.uid, invite_id=invite_id)

        invite = await _get_for_update(db, Invite, invite_id)
        if invite is None:
            raise NotFoundError("Invitation not found.")

        if invite.tenant_email != caller.email:
            logger.warning(
                "Permission denied: invite email does not match caller",
                invite_id=invite_id,
                tenant_id=caller.uid,
            )
            raise PermissionDeniedError("This invitation is not for you.")

        if not can_transition(invite.status, InviteStatus.declined):
            logger.warning("Invite is not pending, cannot reject", invite_id=invite_id, status=invite.status)
            raise FailedPreconditionError("This invitation is no longer pending.")

        await _claim_invite(db, invite, InviteStatus.declined, rejected_at=utcnow())

        logger.info("Invite rejected", invite_id=invite_id, tenant_id=caller.uid)
        return invite

    # ── Reads ────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_invite(
        db: AsyncSession, caller: AuthenticatedCaller, invite_id: str
    ) -> Invite:
        """Visible to the sending landlord and to the addressee only."""
        invite = await db.get(Invite, invite_id)
        if invite is None:
            raise NotFoundError("Invitation not found.")
        if caller.uid != invite.landlord_id and caller.email != invite.tenant_email:
            raise PermissionDeniedError("You do not have access to this invitation.")
        return invite

    @staticmethod
    async def list_sent(
        db: AsyncSession,
        caller: AuthenticatedCaller,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[int, list[Invite]]:
        """
        Paginated list of invites the caller issued as landlord.

        Returns:
            (total_count, page_of_invites)
        """
        base_filter = Invite.landlord_id == caller.uid

        count_result = await db.execute(
            select(func.count()).select_from(Invite).where(base_filter)
        )
        total = count_result.scalar_one()

        result = await db.execute(
            select(Invite)
            .where(base_filter)
            .order_by(Invite.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return total, list(result.scalars().all())

    @staticmethod
    async def list_received(
        db: AsyncSession, caller: AuthenticatedCaller
    ) -> list[Invite]:
        """Pending invites addressed to the caller's email, newest first."""
        result = await db.execute(
            select(Invite)
            .where(
                Invite.tenant_email == caller.email,
                Invite.status == InviteStatus.pending.value,
            )
            .order_by(Invite.created_at.desc())
        )
        return list(result.scalars().all())
