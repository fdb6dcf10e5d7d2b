"""Ops routing rules - department, priority and category for advisories and pricing tasks."""

import re
from dataclasses import dataclass

from hotelops.schemas.operations import AdvisoryPriority, WeatherOpsAction
from hotelops.schemas.ticket import Department, TicketCategory, TicketPriority

# Checked in order; first match wins. ``None`` keeps the advisory's own priority.
ROUTING_TABLE: list[tuple[re.Pattern, Department, AdvisoryPriority | None, AdvisoryPriority]] = [
    # (pattern, department, forced priority, fallback priority)
    (re.compile(r"storm|thunder|lightning|flood|evacuat|safety|hazard"), Department.FRONT_DESK, "high", "high"),
    (re.compile(r"wind|secure outdoor|furniture|terrace|poolside|awning"), Department.MAINTENANCE, None, "medium"),
    (re.compile(r"umbrella|drying|mats|towels|lobby|spill|wet floor|linen"), Department.HOUSEKEEPING, None, "medium"),
    (re.compile(r"indoor options|activities|tour|transport|itinerary|plan"), Department.CONCIERGE, None, "low"),
    (re.compile(r"rate|pricing|promo|discount|occupancy|demand"), Department.MANAGEMENT, None, "medium"),
]

URGENT_PATTERN = re.compile(r"storm|thunder|lightning|flood|evacuat|safety|hazard|emergency")

DEPARTMENT_CATEGORY = {
    Department.HOUSEKEEPING: TicketCategory.HOUSEKEEPING,
    Department.MAINTENANCE: TicketCategory.MAINTENANCE,
    Department.CONCIERGE: TicketCategory.CONCIERGE,
    Department.BILLING: TicketCategory.BILLING,
    Department.MANAGEMENT: TicketCategory.COMPLAINT,
    Department.FRONT_DESK: TicketCategory.OTHER,
}

PRICING_HIGH_PRIORITY_PCT = 8


@dataclass(frozen=True)
class Route:
    department: Department
    priority: AdvisoryPriority


def route_advisory(title: str, reason: str | None = None, priority: AdvisoryPriority | None = None) -> Route:
    text = f"{title} {reason or ''}".lower()
    for pattern, department, forced, fallback in ROUTING_TABLE:
        if pattern.search(text):
            return Route(department=department, priority=forced or priority or fallback)
    return Route(department=Department.FRONT_DESK, priority=priority or "medium")


def map_ticket_priority(priority: AdvisoryPriority, title: str, reason: str | None = None) -> TicketPriority:
    """Safety keywords always escalate to URGENT, whatever the advisory said."""
    if URGENT_PATTERN.search(f"{title} {reason or ''}".lower()):
        return TicketPriority.URGENT
    if priority == "high":
        return TicketPriority.HIGH
    if priority == "low":
        return TicketPriority.LOW
    return TicketPriority.MEDIUM


def parse_advisory_priority(value: str | None) -> AdvisoryPriority | None:
    normalized = (value or "").strip().lower()
    if normalized in ("low", "medium", "high"):
        return normalized
    return None


def parse_department(value: str | None) -> Department:
    """Unrecognized or missing departments fall back to MANAGEMENT."""
    normalized = (value or "").strip().upper()
    try:
        return Department(normalized)
    except ValueError:
        return Department.MANAGEMENT


def parse_ticket_priority(value: str | None) -> TicketPriority:
    normalized = (value or "").strip().upper()
    try:
        return TicketPriority(normalized)
    except ValueError:
        return TicketPriority.MEDIUM


def parse_confidence(value) -> str:
    normalized = str(value or "low").strip().lower()
    return normalized if normalized in ("high", "medium") else "low"


def choose_pricing_priority(confidence: str, adjustment_pct: int) -> TicketPriority:
    if confidence == "high" and abs(adjustment_pct) >= PRICING_HIGH_PRIORITY_PCT:
        return TicketPriority.HIGH
    if confidence == "high":
        return TicketPriority.MEDIUM
    return TicketPriority.LOW


def category_for_department(department: Department) -> TicketCategory:
    return DEPARTMENT_CATEGORY.get(department, TicketCategory.OTHER)


def advisory_id_for(action: WeatherOpsAction) -> str:
    """Stable id derived from title and priority, so repeated generations match."""
    slug = f"{action.title}-{action.priority}".lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug).strip()
    return re.sub(r"\s+", "-", slug)[:80]
