"""Weather advisory rules - turns weather and ops load into staff actions.

Pure functions, no I/O. Rules run in a fixed order and each appends at most
one action; a title already present (case-insensitive) is skipped. The list
is then ordered by priority and capped.
"""

import re
from collections.abc import Callable
from datetime import datetime, timezone

from hotelops.schemas.operations import (
    AdvisoryCategory,
    AdvisoryPriority,
    OpsWindow,
    WeatherOpsAction,
    WeatherOpsActionsResult,
)
from hotelops.schemas.weather import WeatherContext

MAX_ACTIONS = 5
MAX_TITLE_LEN = 60
MAX_REASON_LEN = 120

HOT_DAY_C = 32
COLD_DAY_C = 5
PEAK_ARRIVALS = 20
PEAK_DEPARTURES = 15
HIGH_INHOUSE = 40

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def clamp_text(value: str, max_len: int) -> str:
    return re.sub(r"\s+", " ", value).strip()[:max_len]


def _temp(value: float) -> str:
    return f"{value:g}"


class _ActionList:
    def __init__(self):
        self.items: list[WeatherOpsAction] = []

    def add(
        self,
        title: str,
        reason: str,
        priority: AdvisoryPriority,
        category: AdvisoryCategory | None = None,
    ) -> None:
        if any(item.title.lower() == title.lower() for item in self.items):
            return
        self.items.append(WeatherOpsAction(
            title=clamp_text(title, MAX_TITLE_LEN),
            reason=clamp_text(reason, MAX_REASON_LEN),
            priority=priority,
            category=category,
        ))


def derive_actions(
    weather: WeatherContext | None,
    ops: OpsWindow | None = None,
    clock: Callable[[], datetime] = _utcnow,
) -> WeatherOpsActionsResult:
    generated_at = clock()
    if weather is None or weather.synced_at_utc is None or weather.next_24h is None:
        return WeatherOpsActionsResult(actions=[], generated_at_utc=generated_at)

    actions = _ActionList()
    next_24h = weather.next_24h
    summary = (next_24h.summary or "").lower()
    rain_risk = next_24h.rain_risk
    high_c = next_24h.high_c
    low_c = next_24h.low_c
    stormy = "storm" in summary or "thunder" in summary
    windy = "wind" in summary

    if weather.stale or not weather.is_fresh:
        actions.add(
            "Refresh weather forecast now",
            "Current weather context is stale and may reduce recommendation accuracy.",
            "high",
            "Front Desk",
        )

    if rain_risk == "high":
        actions.add(
            "Stage umbrellas at reception",
            "High rain risk expected; prepare staff and guest-facing supplies.",
            "high",
            "Front Desk",
        )
        actions.add(
            "Prioritize indoor breakfast seating",
            "Wet weather may reduce outdoor seating demand during breakfast hours.",
            "medium",
            "F&B",
        )
    elif rain_risk == "medium":
        actions.add(
            "Prepare rain contingency signage",
            "Moderate rain risk expected; direct guests toward indoor alternatives.",
            "medium",
            "Front Desk",
        )

    if stormy:
        actions.add(
            "Issue weather safety advisory at check-in",
            "Storm conditions are possible; align front desk messaging.",
            "high",
            "Front Desk",
        )

    if windy:
        actions.add(
            "Secure outdoor furniture and setup",
            "Windy conditions may impact terrace and poolside safety.",
            "medium",
            "Maintenance",
        )

    if high_c is not None and high_c >= HOT_DAY_C:
        actions.add(
            "Increase hydration station checks",
            f"Hot conditions expected (up to {_temp(high_c)}C); prioritize water availability.",
            "medium",
            "F&B",
        )

    if low_c is not None and low_c <= COLD_DAY_C:
        actions.add(
            "Prepare cold-weather arrival support",
            f"Low temperatures expected (down to {_temp(low_c)}C); brief front desk team.",
            "medium",
            "Front Desk",
        )

    if ops is not None:
        if ops.arrivals_next_24h >= PEAK_ARRIVALS and rain_risk in ("high", "medium"):
            actions.add(
                "Add lobby arrival coverage for peak check-in",
                f"High arrivals ({ops.arrivals_next_24h}) plus rain risk may slow front desk throughput.",
                "high",
                "Front Desk",
            )
        if ops.departures_next_24h >= PEAK_DEPARTURES and low_c is not None and low_c <= COLD_DAY_C:
            actions.add(
                "Coordinate early transport readiness",
                f"High departures ({ops.departures_next_24h}) with cold conditions can impact outbound flow.",
                "medium",
                "Concierge",
            )
        if ops.inhouse_now >= HIGH_INHOUSE and ("storm" in summary or windy):
            actions.add(
                "Pre-brief maintenance on weather-related calls",
                f"High in-house load ({ops.inhouse_now}) may increase weather-driven service requests.",
                "medium",
                "Maintenance",
            )

    if not actions.items:
        actions.add(
            "Proceed with standard operations plan",
            "No weather disruptions detected in the current forecast window.",
            "low",
            "Front Desk",
        )

    # Stable sort keeps rule order within a priority level
    ordered = sorted(actions.items, key=lambda a: PRIORITY_ORDER[a.priority])
    return WeatherOpsActionsResult(actions=ordered[:MAX_ACTIONS], generated_at_utc=generated_at)
