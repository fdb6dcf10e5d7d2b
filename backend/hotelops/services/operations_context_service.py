"""Operations context - one read-only view of the next 24h for the dashboard.

Combines ops load, weather, the resolved pricing forecast and routed weather
advisories. Each section degrades on its own; the view is always returned.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone
from typing import TypeVar

from hotelops.schemas.operations import (
    OpsContextView,
    OpsWindow,
    PricingSignal,
    PricingSnapshotMeta,
    RoutedAdvisory,
)
from hotelops.schemas.pricing import PricingSummary, ResolvedForecast
from hotelops.services.interfaces import BookingStore, TicketStore, WeatherProvider
from hotelops.services.ops_routing import advisory_id_for, route_advisory
from hotelops.services.pricing_snapshot_service import PricingSnapshotService
from hotelops.services.validation import require_hotel_id
from hotelops.services.weather_advisory_rules import derive_actions

logger = logging.getLogger(__name__)

T = TypeVar("T")

OPS_WINDOW_HOURS = 24
FORECAST_TIMEOUT_FACTOR = 3


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def fallback_forecast(now: datetime) -> ResolvedForecast:
    return ResolvedForecast(
        mode="LIVE_FALLBACK",
        generated_at_utc=now,
        window_start_utc=now,
        window_end_utc=now,
        source="fallback",
        version="v1",
        summary=PricingSummary(demand_trend="flat", opportunity_pct=0, confidence="low"),
        calendar=[],
    )


def pricing_note(summary: PricingSummary) -> str:
    if summary.demand_trend == "up":
        return f"Demand strengthening - consider +{summary.opportunity_pct}% pricing adjustment."
    if summary.demand_trend == "down":
        return f"Demand softening - consider {summary.opportunity_pct}% promotional adjustment."
    return "Demand stable - maintain current pricing and monitor pace."


class OperationsContextService:
    def __init__(
        self,
        bookings: BookingStore,
        weather: WeatherProvider,
        snapshots: PricingSnapshotService,
        tickets: TicketStore,
        timeout_seconds: float = 5.0,
        forecast_timeout_seconds: float | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._bookings = bookings
        self._weather = weather
        self._snapshots = snapshots
        self._tickets = tickets
        self._timeout = timeout_seconds
        # resolve_forecast waits out its own per-source timeouts, then reads and writes a snapshot
        self._forecast_timeout = forecast_timeout_seconds or timeout_seconds * FORECAST_TIMEOUT_FACTOR
        self._clock = clock

    async def get_operations_context(self, hotel_id: str) -> OpsContextView:
        hotel_id = require_hotel_id(hotel_id)
        now = self._clock()

        ops, weather, forecast = await asyncio.gather(
            self._guarded("ops window", lambda: self._ops_window(hotel_id, now), None),
            self._guarded("weather", lambda: self._weather.get_context(hotel_id), None),
            self._guarded(
                "pricing forecast",
                lambda: self._snapshots.resolve_forecast(hotel_id),
                None,
                timeout=self._forecast_timeout,
            ),
        )
        if ops is None:
            ops = OpsWindow(window_start_utc=now, window_end_utc=now + timedelta(hours=OPS_WINDOW_HOURS))
        if forecast is None:
            forecast = fallback_forecast(now)

        actions = derive_actions(weather, ops, clock=self._clock)
        advisories = []
        for action in actions.actions:
            route = route_advisory(action.title, action.reason, action.priority)
            advisories.append(RoutedAdvisory(
                id=advisory_id_for(action),
                title=action.title,
                reason=action.reason,
                priority=route.priority,
                department=route.department,
                category=action.category,
            ))

        if advisories:
            created = await self._guarded(
                "advisory tickets",
                lambda: self._tickets.find_weather_action_tickets(hotel_id, [a.id for a in advisories]),
                {},
            )
            advisories = [a.model_copy(update={"created_ticket": created.get(a.id)}) for a in advisories]

        summary = forecast.summary
        return OpsContextView(
            hotel_id=hotel_id,
            generated_at_utc=now,
            ops=ops,
            weather=weather,
            pricing_forecast=forecast,
            pricing_snapshot_meta=PricingSnapshotMeta(
                generated_at_utc=forecast.generated_at_utc,
                source=forecast.source,
                version=forecast.version,
            ),
            pricing_signal=PricingSignal(
                demand_trend=summary.demand_trend,
                opportunity_pct=summary.opportunity_pct,
                confidence=summary.confidence,
                market_coverage_pct=summary.market_coverage_pct,
                market_samples_total=summary.market_samples_total,
                nights_with_market=summary.nights_with_market,
                nights_total=summary.nights_total,
                note=pricing_note(summary),
            ),
            advisories=advisories,
        )

    async def _ops_window(self, hotel_id: str, now: datetime) -> OpsWindow:
        end = now + timedelta(hours=OPS_WINDOW_HOURS)
        arrivals, departures, inhouse = await asyncio.gather(
            self._bookings.count_arrivals(hotel_id, now, end),
            self._bookings.count_departures(hotel_id, now, end),
            self._bookings.count_inhouse(hotel_id),
        )
        return OpsWindow(
            window_start_utc=now,
            window_end_utc=end,
            arrivals_next_24h=arrivals,
            departures_next_24h=departures,
            inhouse_now=inhouse,
        )

    async def _guarded(
        self,
        section: str,
        call: Callable[[], Awaitable[T]],
        default: T,
        timeout: float | None = None,
    ) -> T:
        try:
            return await asyncio.wait_for(call(), timeout=timeout or self._timeout)
        except Exception as e:
            logger.warning(f"Operations context: {section} unavailable, degrading ({e!r})")
            return default
