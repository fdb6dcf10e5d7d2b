"""Ticketing service - promotes advisories and pricing actions into routed tickets.

Dedup differs by source:
- Pricing actions carry a ``source_key`` (``PRICING:<night>:<pct>``) with a
  unique index, so at most one ticket exists even when two requests race.
- Advisories are matched through the audit log within a lookback window.
  That scan is best-effort; two simultaneous requests can both create a
  ticket. A unique (hotel, advisory, time bucket) index would close the gap.
"""

import logging
import math
from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone

from hotelops.errors import PersistenceFailure, SourceKeyConflict, ValidationFailure
from hotelops.schemas.ticket import (
    AdvisoryTicketRequest,
    Department,
    PricingActionTicketRequest,
    StoredTicket,
    TicketDraft,
    TicketResult,
)
from hotelops.services.interfaces import AssigneePicker, TicketStore
from hotelops.services.ops_routing import (
    category_for_department,
    choose_pricing_priority,
    map_ticket_priority,
    parse_advisory_priority,
    parse_confidence,
    parse_department,
    parse_ticket_priority,
    route_advisory,
)
from hotelops.services.pricing_forecast_service import round_half_up
from hotelops.services.validation import require_hotel_id, require_text

logger = logging.getLogger(__name__)

ADVISORY_SOURCE = "WEATHER_ACTIONS"
PRICING_SOURCE = "PRICING_ACTION"
ADVISORY_AUDIT_ACTION = "OPERATIONS_ADVISORY_TICKET_CREATED"
PRICING_AUDIT_ACTION = "PRICING_ACTION_TICKET_CREATED"

MAX_SUBJECT_LEN = 120
MAX_MESSAGE_LEN = 500


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def pricing_source_key(night_date: str, adjustment_pct: int) -> str:
    return f"PRICING:{night_date}:{adjustment_pct}"


def _adjustment_pct(metadata: dict) -> int:
    raw = metadata.get("suggested_adjustment_pct", 0)
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(value):
        return 0
    return round_half_up(value)


def _to_result(ticket: StoredTicket, deduped: bool) -> TicketResult:
    return TicketResult(
        ticket_id=ticket.id,
        conversation_id=ticket.conversation_id,
        status=ticket.status,
        department=ticket.department,
        priority=ticket.priority,
        assigned_to=ticket.assigned_to_id,
        deduped=deduped,
        ticket_url=f"/tickets/{ticket.id}",
    )


class TicketingService:
    """Creates conversation, message, ticket and audit entry as one unit."""

    def __init__(
        self,
        tickets: TicketStore,
        picker: AssigneePicker,
        advisory_dedup_hours: int = 6,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._tickets = tickets
        self._picker = picker
        self._dedup_window = timedelta(hours=advisory_dedup_hours)
        self._clock = clock

    async def create_ticket_from_advisory(
        self, hotel_id: str, user_id: str, req: AdvisoryTicketRequest
    ) -> TicketResult:
        hotel_id = require_hotel_id(hotel_id)
        user_id = require_text(user_id, "user_id")
        advisory_priority = parse_advisory_priority(req.priority)
        if advisory_priority is None:
            raise ValidationFailure("priority must be low|medium|high", field="priority")
        title = require_text(req.title, "title")
        reason = require_text(req.reason, "reason")

        route = route_advisory(title, reason, advisory_priority)
        priority = map_ticket_priority(route.priority, title, reason)

        if req.advisory_id:
            since = self._clock() - self._dedup_window
            existing = await self._tickets.find_advisory_ticket(hotel_id, user_id, req.advisory_id, since)
            if existing is not None:
                logger.info(f"Advisory '{req.advisory_id}' already ticketed as {existing.id}, deduped")
                return _to_result(existing, deduped=True)

        source = req.source or ADVISORY_SOURCE
        meta = req.meta.model_dump() if req.meta else {}
        draft = TicketDraft(
            hotel_id=hotel_id,
            user_id=user_id,
            subject=f"[Operations Advisory] {title[:100]}"[:MAX_SUBJECT_LEN],
            message_body=reason[:MAX_MESSAGE_LEN],
            department=route.department,
            category=category_for_department(route.department),
            priority=priority,
            details={
                "source": source,
                "advisory_id": req.advisory_id,
                "title": title,
                "reason": reason,
            },
            audit_action=ADVISORY_AUDIT_ACTION,
            audit_details={
                "source": source,
                "advisory_id": req.advisory_id,
                "title": title,
                "reason": reason,
                "requested_department": req.department,
                "department": route.department.value,
                "priority": route.priority,
                "weather_synced_at_utc": meta.get("weather_synced_at_utc"),
                "generated_at_utc": meta.get("generated_at_utc"),
            },
        )

        ticket = await self._tickets.create(draft, self._picker)
        logger.info(
            f"Advisory ticket {ticket.id} created for hotel {hotel_id}: "
            f"{ticket.department.value}/{ticket.priority.value}"
        )
        return _to_result(ticket, deduped=False)

    async def create_ticket_from_pricing_action(
        self, hotel_id: str, user_id: str, req: PricingActionTicketRequest
    ) -> TicketResult:
        hotel_id = require_hotel_id(hotel_id)
        user_id = require_text(user_id, "user_id")
        night_date = require_text(req.night_date, "night_date")
        action = require_text(req.action, "action")
        reason = require_text(req.reason, "reason")
        try:
            date.fromisoformat(night_date)
        except ValueError:
            raise ValidationFailure("night_date must be YYYY-MM-DD", field="night_date")

        metadata = dict(req.metadata or {})
        adjustment_pct = _adjustment_pct(metadata)
        confidence = parse_confidence(req.confidence or metadata.get("confidence"))
        department = parse_department(req.department) if req.department else Department.MANAGEMENT
        priority = (
            parse_ticket_priority(req.priority)
            if req.priority
            else choose_pricing_priority(confidence, adjustment_pct)
        )
        source_key = pricing_source_key(night_date, adjustment_pct)

        existing = await self._tickets.find_by_source_key(hotel_id, source_key)
        if existing is not None:
            logger.info(f"Pricing action {source_key} already ticketed as {existing.id}, deduped")
            return _to_result(existing, deduped=True)

        draft = TicketDraft(
            hotel_id=hotel_id,
            user_id=user_id,
            subject=f"[Pricing Task] {night_date} - {action}"[:MAX_SUBJECT_LEN],
            message_body=reason[:MAX_MESSAGE_LEN],
            department=department,
            category=category_for_department(department),
            priority=priority,
            source_key=source_key,
            details={
                "source": PRICING_SOURCE,
                "night_date": night_date,
                "action": action,
                "reason": reason,
                "metadata": metadata,
                "created_by_user_id": user_id,
                "created_at_utc": self._clock().isoformat(),
                "confidence": confidence,
                "suggested_adjustment_pct": adjustment_pct,
            },
            audit_action=PRICING_AUDIT_ACTION,
            audit_details={
                "source": PRICING_SOURCE,
                "night_date": night_date,
                "action": action,
                "reason": reason,
                "department": department.value,
                "priority": priority.value,
                "source_key": source_key,
                "metadata": metadata,
            },
        )

        try:
            ticket = await self._tickets.create(draft, self._picker)
        except SourceKeyConflict:
            # Lost the race to a concurrent request; its ticket is the answer
            winner = await self._tickets.find_by_source_key(hotel_id, source_key)
            if winner is None:
                raise PersistenceFailure(f"Ticket for {source_key} conflicted but could not be read back")
            logger.info(f"Pricing action {source_key} created concurrently as {winner.id}, deduped")
            return _to_result(winner, deduped=True)

        logger.info(f"Pricing ticket {ticket.id} created for hotel {hotel_id} ({source_key})")
        return _to_result(ticket, deduped=False)
