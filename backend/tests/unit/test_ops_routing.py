"""Unit tests for advisory routing and ticket priority mapping."""

import pytest

from hotelops.schemas.operations import WeatherOpsAction
from hotelops.schemas.ticket import Department, TicketCategory, TicketPriority
from hotelops.services.ops_routing import (
    advisory_id_for,
    category_for_department,
    choose_pricing_priority,
    map_ticket_priority,
    parse_advisory_priority,
    parse_department,
    parse_ticket_priority,
    route_advisory,
)


class TestRouteAdvisory:
    @pytest.mark.parametrize(
        ("title", "department"),
        [
            ("Issue weather safety advisory at check-in", Department.FRONT_DESK),
            ("Secure outdoor furniture and setup", Department.MAINTENANCE),
            ("Stage umbrellas at reception", Department.HOUSEKEEPING),
            ("Coordinate early transport readiness", Department.CONCIERGE),
            ("Review promo rate for the weekend", Department.MANAGEMENT),
            ("Refresh weather forecast now", Department.FRONT_DESK),
        ],
    )
    def test_department_by_keyword(self, title, department):
        assert route_advisory(title, "", "medium").department == department

    def test_safety_forces_high_priority(self):
        route = route_advisory("Flood warning", "Basement may take water", "low")
        assert route.department == Department.FRONT_DESK
        assert route.priority == "high"

    def test_keeps_supplied_priority(self):
        assert route_advisory("Stage umbrellas at reception", None, "high").priority == "high"

    def test_falls_back_to_row_priority(self):
        assert route_advisory("Book indoor activities", None, None).priority == "low"
        assert route_advisory("Something unusual", None, None).priority == "medium"

    def test_first_matching_row_wins(self):
        # "wind" (maintenance) comes before "towels" (housekeeping)
        route = route_advisory("Extra towels for windy pool deck", None, "low")
        assert route.department == Department.MAINTENANCE


class TestPriorities:
    def test_safety_words_escalate_to_urgent(self):
        assert map_ticket_priority("low", "Evacuation drill", None) == TicketPriority.URGENT
        assert map_ticket_priority("medium", "Lobby prep", "possible emergency closure") == TicketPriority.URGENT

    @pytest.mark.parametrize(
        ("priority", "expected"),
        [("high", TicketPriority.HIGH), ("medium", TicketPriority.MEDIUM), ("low", TicketPriority.LOW)],
    )
    def test_plain_mapping(self, priority, expected):
        assert map_ticket_priority(priority, "Stage umbrellas", "rain") == expected

    @pytest.mark.parametrize(
        ("confidence", "pct", "expected"),
        [
            ("high", 8, TicketPriority.HIGH),
            ("high", -9, TicketPriority.HIGH),
            ("high", 5, TicketPriority.MEDIUM),
            ("medium", 12, TicketPriority.LOW),
            ("low", 15, TicketPriority.LOW),
        ],
    )
    def test_pricing_priority(self, confidence, pct, expected):
        assert choose_pricing_priority(confidence, pct) == expected


class TestParsing:
    def test_advisory_priority(self):
        assert parse_advisory_priority(" HIGH ") == "high"
        assert parse_advisory_priority("urgent") is None
        assert parse_advisory_priority(None) is None

    def test_unknown_department_falls_back_to_management(self):
        assert parse_department("front_desk") == Department.FRONT_DESK
        assert parse_department("SPA") == Department.MANAGEMENT
        assert parse_department(None) == Department.MANAGEMENT

    def test_unknown_ticket_priority_falls_back_to_medium(self):
        assert parse_ticket_priority("urgent") == TicketPriority.URGENT
        assert parse_ticket_priority("critical") == TicketPriority.MEDIUM

    def test_category_for_department(self):
        assert category_for_department(Department.HOUSEKEEPING) == TicketCategory.HOUSEKEEPING
        assert category_for_department(Department.MANAGEMENT) == TicketCategory.COMPLAINT
        assert category_for_department(Department.FRONT_DESK) == TicketCategory.OTHER


class TestAdvisoryId:
    def test_slug_is_stable(self):
        action = WeatherOpsAction(title="Stage umbrellas at reception", reason="Rain", priority="high")
        assert advisory_id_for(action) == "stage-umbrellas-at-reception-high"
        assert advisory_id_for(action) == advisory_id_for(action.model_copy())

    def test_slug_drops_punctuation(self):
        action = WeatherOpsAction(title="Pre-brief maintenance on weather-related calls!", reason="x", priority="medium")
        assert advisory_id_for(action) == "pre-brief-maintenance-on-weather-related-calls-medium"
