"""Ticket persistence and department load-based assignment."""

import logging
from datetime import datetime

from sqlalchemy import String, cast, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hotelops.errors import PersistenceFailure, SourceKeyConflict
from hotelops.models import ActivityLog, Conversation, Message, Ticket, User
from hotelops.schemas.operations import CreatedTicketRef
from hotelops.schemas.ticket import Department, StoredTicket, TicketDraft
from hotelops.services.interfaces import AssigneePicker

logger = logging.getLogger(__name__)

ADVISORY_SOURCE = "WEATHER_ACTIONS"
ADVISORY_AUDIT_ACTION = "OPERATIONS_ADVISORY_TICKET_CREATED"
SOURCE_KEY_CONSTRAINT = "uq_tickets_hotel_source_key"

# Staff module permission that makes a user eligible for a department's tickets
DEPARTMENT_MODULE_MAP = {
    Department.FRONT_DESK: "bookings",
    Department.HOUSEKEEPING: "housekeeping",
    Department.MAINTENANCE: "rooms",
    Department.CONCIERGE: "concierge",
    Department.BILLING: "financials",
    Department.MANAGEMENT: "dashboard",
}


def _stored(ticket: Ticket) -> StoredTicket:
    return StoredTicket(
        id=ticket.id,
        hotel_id=ticket.hotel_id,
        conversation_id=ticket.conversation_id,
        department=ticket.department,
        priority=ticket.priority,
        status=ticket.status,
        assigned_to_id=ticket.assigned_to_id,
        source_key=ticket.source_key,
    )


class DepartmentLoadPicker:
    """Assigns to the eligible staff member with the fewest open tickets in the department."""

    async def pick(self, tx: AsyncSession, hotel_id: str, department: Department) -> str | None:
        module = DEPARTMENT_MODULE_MAP.get(department)
        result = await tx.execute(
            select(User)
            .where(User.hotel_id == hotel_id, User.is_active.is_(True))
            .order_by(User.created_at.asc(), User.id.asc())
        )
        eligible = [
            u.id for u in result.scalars().all()
            if u.role == "ADMIN" or (module and module in (u.module_permissions or []))
        ]
        if not eligible:
            return None

        load_result = await tx.execute(
            select(Ticket.assigned_to_id, func.count(Ticket.id))
            .where(
                Ticket.hotel_id == hotel_id,
                Ticket.department == department.value,
                Ticket.status == "OPEN",
                Ticket.assigned_to_id.in_(eligible),
            )
            .group_by(Ticket.assigned_to_id)
        )
        load = {user_id: count for user_id, count in load_result.all()}
        # min() keeps the first of equally loaded users, i.e. the longest-serving
        return min(eligible, key=lambda user_id: load.get(user_id, 0))


class TicketRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def find_by_source_key(self, hotel_id: str, source_key: str) -> StoredTicket | None:
        async with self._session_factory() as db:
            result = await db.execute(
                select(Ticket).where(Ticket.hotel_id == hotel_id, Ticket.source_key == source_key)
            )
            ticket = result.scalar_one_or_none()
            return _stored(ticket) if ticket else None

    async def find_advisory_ticket(
        self, hotel_id: str, user_id: str, advisory_id: str, since: datetime
    ) -> StoredTicket | None:
        async with self._session_factory() as db:
            result = await db.execute(
                select(Ticket)
                .join(ActivityLog, ActivityLog.entity_id == cast(Ticket.id, String))
                .where(
                    Ticket.hotel_id == hotel_id,
                    ActivityLog.user_id == user_id,
                    ActivityLog.action == ADVISORY_AUDIT_ACTION,
                    ActivityLog.entity == "ticket",
                    ActivityLog.created_at >= since,
                    ActivityLog.details["advisory_id"].astext == advisory_id,
                )
                .order_by(ActivityLog.created_at.desc())
                .limit(1)
            )
            ticket = result.scalar_one_or_none()
            return _stored(ticket) if ticket else None

    async def find_weather_action_tickets(
        self, hotel_id: str, advisory_ids: list[str]
    ) -> dict[str, CreatedTicketRef]:
        if not advisory_ids:
            return {}
        async with self._session_factory() as db:
            result = await db.execute(
                select(Ticket)
                .where(
                    Ticket.hotel_id == hotel_id,
                    Ticket.details["source"].astext == ADVISORY_SOURCE,
                    Ticket.details["advisory_id"].astext.in_(advisory_ids),
                )
                .order_by(Ticket.created_at_utc.desc())
            )
            found: dict[str, CreatedTicketRef] = {}
            for ticket in result.scalars().all():
                advisory_id = (ticket.details or {}).get("advisory_id")
                if advisory_id and advisory_id not in found:
                    found[advisory_id] = CreatedTicketRef(
                        ticket_id=ticket.id,
                        conversation_id=ticket.conversation_id,
                        created_at_utc=ticket.created_at_utc,
                    )
            return found

    async def create(self, draft: TicketDraft, picker: AssigneePicker) -> StoredTicket:
        """Conversation, system message, ticket and audit entry in one transaction."""
        async with self._session_factory() as db:
            try:
                async with db.begin():
                    assignee = await picker.pick(db, draft.hotel_id, draft.department)

                    conversation = Conversation(
                        hotel_id=draft.hotel_id,
                        subject=draft.subject,
                        status="OPEN",
                        last_message_at=func.now(),
                    )
                    db.add(conversation)
                    await db.flush()

                    db.add(Message(
                        conversation_id=conversation.id,
                        sender_type="SYSTEM",
                        sender_user_id=draft.user_id,
                        body=draft.message_body,
                    ))

                    ticket = Ticket(
                        hotel_id=draft.hotel_id,
                        conversation_id=conversation.id,
                        type="GENERAL_INQUIRY",
                        department=draft.department.value,
                        category=draft.category.value,
                        priority=draft.priority.value,
                        status="OPEN",
                        assigned_to_id=assignee,
                        source_key=draft.source_key,
                        details=draft.details,
                    )
                    db.add(ticket)
                    await db.flush()

                    db.add(ActivityLog(
                        user_id=draft.user_id,
                        action=draft.audit_action,
                        entity="ticket",
                        entity_id=ticket.id,
                        details={**draft.audit_details, "ticket_id": ticket.id, "conversation_id": conversation.id},
                    ))
                    stored = _stored(ticket)
            except IntegrityError as e:
                if draft.source_key and SOURCE_KEY_CONSTRAINT in str(e.orig):
                    raise SourceKeyConflict(draft.source_key) from e
                logger.error(f"Ticket insert failed for hotel {draft.hotel_id}: {e}")
                raise PersistenceFailure("Could not create ticket") from e
            except SQLAlchemyError as e:
                logger.error(f"Ticket insert failed for hotel {draft.hotel_id}: {e}")
                raise PersistenceFailure("Could not create ticket") from e

        return stored
