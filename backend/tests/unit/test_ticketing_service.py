"""Unit tests for ticket creation from advisories and pricing actions."""

import pytest

from fakes import HOTEL_ID, OTHER_HOTEL_ID, USER_ID
from hotelops.errors import PersistenceFailure, ValidationFailure
from hotelops.models import Ticket
from hotelops.repositories.ticket_repository import SOURCE_KEY_CONSTRAINT
from hotelops.schemas.ticket import (
    AdvisoryMeta,
    AdvisoryTicketRequest,
    Department,
    PricingActionTicketRequest,
    TicketCategory,
    TicketPriority,
)


def _advisory(**overrides) -> AdvisoryTicketRequest:
    data = {
        "advisory_id": "stage-umbrellas-at-reception-high",
        "title": "Stage umbrellas at reception",
        "reason": "High rain risk expected; prepare staff and guest-facing supplies.",
        "priority": "high",
        "meta": AdvisoryMeta(weather_synced_at_utc="2026-03-10T11:00:00Z"),
    }
    data.update(overrides)
    return AdvisoryTicketRequest(**data)


def _pricing(**overrides) -> PricingActionTicketRequest:
    data = {
        "night_date": "2026-03-14",
        "action": "Raise BAR",
        "reason": "Occupancy outlook 92% with strong pickup",
        "metadata": {"suggested_adjustment_pct": 9.6, "confidence": "high"},
    }
    data.update(overrides)
    return PricingActionTicketRequest(**data)


class TestAdvisoryTickets:
    """Tests for TicketingService.create_ticket_from_advisory."""

    async def test_creates_routed_ticket(self, ticketing, ticket_store, picker):
        result = await ticketing.create_ticket_from_advisory(HOTEL_ID, USER_ID, _advisory())

        assert result.deduped is False
        assert result.department == Department.HOUSEKEEPING
        assert result.priority == TicketPriority.HIGH
        assert result.assigned_to == "staff-1"
        assert result.ticket_url == f"/tickets/{result.ticket_id}"

        draft = ticket_store.drafts[result.ticket_id]
        assert draft.subject == "[Operations Advisory] Stage umbrellas at reception"
        assert draft.category == TicketCategory.HOUSEKEEPING
        assert draft.details["source"] == "WEATHER_ACTIONS"
        assert draft.details["advisory_id"] == "stage-umbrellas-at-reception-high"
        assert draft.audit_action == "OPERATIONS_ADVISORY_TICKET_CREATED"
        assert draft.audit_details["weather_synced_at_utc"] == "2026-03-10T11:00:00Z"
        # picker runs inside the store's write
        assert picker.calls == [(ticket_store, HOTEL_ID, Department.HOUSEKEEPING)]

    async def test_safety_keywords_make_it_urgent(self, ticketing):
        req = _advisory(
            advisory_id="issue-weather-safety-advisory-at-check-in-medium",
            title="Issue weather safety advisory at check-in",
            reason="Storm conditions are possible; align front desk messaging.",
            priority="medium",
        )

        result = await ticketing.create_ticket_from_advisory(HOTEL_ID, USER_ID, req)

        assert result.department == Department.FRONT_DESK
        assert result.priority == TicketPriority.URGENT

    async def test_repeat_within_window_is_deduped(self, ticketing, ticket_store, clock):
        first = await ticketing.create_ticket_from_advisory(HOTEL_ID, USER_ID, _advisory())
        clock.advance(hours=5)

        second = await ticketing.create_ticket_from_advisory(HOTEL_ID, USER_ID, _advisory())

        assert second.deduped is True
        assert second.ticket_id == first.ticket_id
        assert len(ticket_store.tickets) == 1

    async def test_repeat_after_window_creates_new_ticket(self, ticketing, ticket_store, clock):
        first = await ticketing.create_ticket_from_advisory(HOTEL_ID, USER_ID, _advisory())
        clock.advance(hours=7)

        second = await ticketing.create_ticket_from_advisory(HOTEL_ID, USER_ID, _advisory())

        assert second.deduped is False
        assert second.ticket_id != first.ticket_id

    async def test_without_advisory_id_never_dedupes(self, ticketing, ticket_store):
        await ticketing.create_ticket_from_advisory(HOTEL_ID, USER_ID, _advisory(advisory_id=None))
        await ticketing.create_ticket_from_advisory(HOTEL_ID, USER_ID, _advisory(advisory_id=None))

        assert len(ticket_store.tickets) == 2

    async def test_long_title_is_truncated_in_subject(self, ticketing, ticket_store):
        result = await ticketing.create_ticket_from_advisory(HOTEL_ID, USER_ID, _advisory(title="U" * 300))

        assert ticket_store.drafts[result.ticket_id].subject == "[Operations Advisory] " + "U" * 98

    @pytest.mark.parametrize(
        ("overrides", "field"),
        [
            ({"priority": "urgent"}, "priority"),
            ({"title": "  "}, "title"),
            ({"reason": ""}, "reason"),
        ],
    )
    async def test_rejects_invalid_requests(self, ticketing, ticket_store, overrides, field):
        with pytest.raises(ValidationFailure) as exc:
            await ticketing.create_ticket_from_advisory(HOTEL_ID, USER_ID, _advisory(**overrides))

        assert exc.value.field == field
        assert ticket_store.tickets == []

    async def test_write_failure_leaves_nothing_behind(self, ticketing, ticket_store):
        ticket_store.fail_next_create = True

        with pytest.raises(PersistenceFailure):
            await ticketing.create_ticket_from_advisory(HOTEL_ID, USER_ID, _advisory())

        assert ticket_store.tickets == []
        assert ticket_store.audit == []


class TestPricingActionTickets:
    """Tests for TicketingService.create_ticket_from_pricing_action."""

    async def test_creates_ticket_with_source_key(self, ticketing, ticket_store):
        result = await ticketing.create_ticket_from_pricing_action(HOTEL_ID, USER_ID, _pricing())

        assert result.deduped is False
        assert result.department == Department.MANAGEMENT
        assert result.priority == TicketPriority.HIGH

        draft = ticket_store.drafts[result.ticket_id]
        assert draft.source_key == "PRICING:2026-03-14:10"
        assert draft.subject == "[Pricing Task] 2026-03-14 - Raise BAR"
        assert draft.category == TicketCategory.COMPLAINT
        assert draft.details["suggested_adjustment_pct"] == 10
        assert draft.audit_action == "PRICING_ACTION_TICKET_CREATED"

    async def test_same_action_twice_returns_same_ticket(self, ticketing, ticket_store):
        first = await ticketing.create_ticket_from_pricing_action(HOTEL_ID, USER_ID, _pricing())
        second = await ticketing.create_ticket_from_pricing_action(HOTEL_ID, USER_ID, _pricing())

        assert second.ticket_id == first.ticket_id
        assert second.deduped is True
        assert len(ticket_store.tickets) == 1

    async def test_concurrent_insert_is_reported_as_dedup(self, ticketing, ticket_store):
        ticket_store.race_next_create = True

        result = await ticketing.create_ticket_from_pricing_action(HOTEL_ID, USER_ID, _pricing())

        assert result.deduped is True
        assert result.ticket_id == ticket_store.tickets[0].id
        assert len(ticket_store.tickets) == 1

    async def test_same_key_in_another_hotel_is_a_separate_ticket(self, ticketing, ticket_store):
        first = await ticketing.create_ticket_from_pricing_action(HOTEL_ID, USER_ID, _pricing())
        other = await ticketing.create_ticket_from_pricing_action(OTHER_HOTEL_ID, USER_ID, _pricing())

        assert other.deduped is False
        assert other.ticket_id != first.ticket_id
        assert [t.source_key for t in ticket_store.tickets] == ["PRICING:2026-03-14:10"] * 2

    def test_source_key_is_unique_per_hotel(self):
        constraint = next(
            c for c in Ticket.__table__.constraints if c.name == SOURCE_KEY_CONSTRAINT
        )

        assert [col.name for col in constraint.columns] == ["hotel_id", "source_key"]
        assert Ticket.__table__.c.source_key.unique is not True

    async def test_explicit_department_and_priority_win(self, ticketing):
        req = _pricing(department="front_desk", priority="low")

        result = await ticketing.create_ticket_from_pricing_action(HOTEL_ID, USER_ID, req)

        assert result.department == Department.FRONT_DESK
        assert result.priority == TicketPriority.LOW

    async def test_unknown_department_goes_to_management(self, ticketing):
        result = await ticketing.create_ticket_from_pricing_action(HOTEL_ID, USER_ID, _pricing(department="SPA"))

        assert result.department == Department.MANAGEMENT

    @pytest.mark.parametrize(
        ("metadata", "expected_priority", "expected_key"),
        [
            ({"suggested_adjustment_pct": 5, "confidence": "high"}, TicketPriority.MEDIUM, "PRICING:2026-03-14:5"),
            ({"suggested_adjustment_pct": -12, "confidence": "medium"}, TicketPriority.LOW, "PRICING:2026-03-14:-12"),
            ({}, TicketPriority.LOW, "PRICING:2026-03-14:0"),
            ({"suggested_adjustment_pct": "n/a"}, TicketPriority.LOW, "PRICING:2026-03-14:0"),
        ],
    )
    async def test_priority_from_confidence_and_size(
        self, ticketing, ticket_store, metadata, expected_priority, expected_key
    ):
        result = await ticketing.create_ticket_from_pricing_action(
            HOTEL_ID, USER_ID, _pricing(metadata=metadata)
        )

        assert result.priority == expected_priority
        assert ticket_store.drafts[result.ticket_id].source_key == expected_key

    @pytest.mark.parametrize(
        ("overrides", "field"),
        [
            ({"night_date": ""}, "night_date"),
            ({"night_date": "14/03/2026"}, "night_date"),
            ({"action": " "}, "action"),
            ({"reason": ""}, "reason"),
        ],
    )
    async def test_rejects_invalid_requests(self, ticketing, overrides, field):
        with pytest.raises(ValidationFailure) as exc:
            await ticketing.create_ticket_from_pricing_action(HOTEL_ID, USER_ID, _pricing(**overrides))
        assert exc.value.field == field

    async def test_rejects_missing_actor(self, ticketing):
        with pytest.raises(ValidationFailure) as exc:
            await ticketing.create_ticket_from_pricing_action(HOTEL_ID, "", _pricing())
        assert exc.value.field == "user_id"
