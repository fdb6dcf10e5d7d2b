"""Pricing forecast service - rule-based nightly rate guidance.

Uses a layered approach per night:
1. Occupancy pace - bookings overlapping the night vs room capacity
2. Arrival/departure load - check-ins vs check-outs on the date
3. Weather modifier - only applied while the forecast is fresh, never dominant
4. Market position - our ADR vs the competitor median for the night

This is pricing guidance, not a demand model. It improves as bookings,
room inventory and competitor rate samples accumulate.
"""

import asyncio
import logging
import math
from collections import Counter
from collections.abc import Awaitable, Callable
from datetime import date, datetime, time, timedelta, timezone
from typing import TypeVar

from hotelops.schemas.pricing import (
    Confidence,
    DemandTrend,
    NightWeather,
    PricingCalendarNight,
    PricingForecastResult,
    PricingSummary,
)
from hotelops.schemas.weather import WeatherContext
from hotelops.services.interfaces import (
    FORECAST_BOOKING_STATUSES,
    BookingRecord,
    BookingStore,
    MarketStore,
    RateSample,
    RoomStore,
    WeatherProvider,
)
from hotelops.services.validation import require_hotel_id, require_positive_int

logger = logging.getLogger(__name__)

T = TypeVar("T")

FORECAST_SOURCE = "INTERNAL_RULES"
FORECAST_VERSION = "v1"

MAX_ADJUSTMENT_PCT = 15
LONG_RANGE_DAYS = 21  # beyond this, confidence is always low
SUMMARY_NIGHTS = 7
MAX_NIGHT_REASONS = 5
MAX_SUMMARY_REASONS = 6

# Occupancy -> demand points, checked top-down
OCCUPANCY_STRONG = [(0.85, 9), (0.70, 6), (0.55, 3)]
OCCUPANCY_WEAK = [(0.25, -7), (0.40, -4)]

DEMAND_UP_OCCUPANCY = 0.70
DEMAND_DOWN_OCCUPANCY = 0.40

CONFIDENCE_POINTS = {"low": 0, "medium": 1, "high": 2}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def round_half_up(value: float) -> int:
    """Round .5 towards positive infinity (matches how the dashboard rounds)."""
    return math.floor(value + 0.5)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def median(values: list[float]) -> float:
    """Median; an even-length list yields the rounded mean of the middle pair."""
    clean = sorted(v for v in values if v is not None and not math.isnan(v))
    if not clean:
        return 0
    mid = len(clean) // 2
    if len(clean) % 2 == 0:
        return round_half_up((clean[mid - 1] + clean[mid]) / 2)
    return clean[mid]


def adr_estimate(rates: list[float | None]) -> float | None:
    """Mean of positive room rates, rounded to cents."""
    clean = [r for r in rates if r is not None and not math.isnan(r) and r > 0]
    if not clean:
        return None
    return round(sum(clean) / len(clean), 2)


def utc_date(value: datetime) -> date:
    if value.tzinfo is None:
        return value.date()
    return value.astimezone(timezone.utc).date()


def occupies_night(night: date, booking: BookingRecord) -> bool:
    """A booking occupies a night when check-in <= night < check-out."""
    return utc_date(booking.check_in) <= night < utc_date(booking.check_out)


def score_demand(occupancy: float, arrivals: int, departures: int) -> int:
    score = 0
    for threshold, points in OCCUPANCY_STRONG:
        if occupancy >= threshold:
            score += points
            break
    else:
        for threshold, points in OCCUPANCY_WEAK:
            if occupancy <= threshold:
                score += points
                break

    if arrivals > departures:
        score += 2
    elif arrivals < departures:
        score -= 1
    return score


def score_weather(weather: WeatherContext | None) -> int:
    """Conservative weather modifier. Stale weather keeps pricing neutral."""
    if weather is None or not weather.is_fresh or weather.next_24h is None:
        return 0

    rain_risk = weather.next_24h.rain_risk
    summary = (weather.next_24h.summary or "").lower()

    modifier = 0
    if rain_risk == "high":
        modifier -= 2
    elif rain_risk == "medium":
        modifier -= 1

    if "storm" in summary or "thunder" in summary:
        modifier -= 2
    if "snow" in summary:
        modifier -= 2
    return modifier


def score_confidence(
    bookings_count: int,
    capacity: int,
    has_fresh_weather: bool,
    days_ahead_from_now: int,
) -> Confidence:
    if days_ahead_from_now > LONG_RANGE_DAYS:
        return "low"
    if capacity <= 1:
        return "low"

    occupancy = bookings_count / capacity
    score = 0
    if occupancy >= 0.75:
        score += 2
    elif occupancy >= 0.5:
        score += 1

    if bookings_count >= 10:
        score += 2
    elif bookings_count >= 5:
        score += 1

    if not has_fresh_weather:
        score -= 1

    if score >= 3:
        return "high"
    if score >= 1:
        return "medium"
    return "low"


def summarize_confidence(confidences: list[Confidence], weather: WeatherContext | None) -> Confidence:
    if not confidences:
        return "low"

    avg = sum(CONFIDENCE_POINTS[c] for c in confidences) / len(confidences)
    if avg >= 1.5:
        # A stale forecast caps the aggregate at medium
        if weather is not None and not weather.is_fresh:
            return "medium"
        return "high"
    if avg >= 0.75:
        return "medium"
    return "low"


def demand_trend_for(occupancy_avg: float | None) -> DemandTrend:
    if occupancy_avg is None:
        return "flat"
    if occupancy_avg >= DEMAND_UP_OCCUPANCY:
        return "up"
    if occupancy_avg <= DEMAND_DOWN_OCCUPANCY:
        return "down"
    return "flat"


def market_stats(samples: list[float], your_adr: float | None) -> dict:
    if not samples:
        return {
            "market_median": None,
            "market_min": None,
            "market_max": None,
            "market_samples": 0,
            "position_vs_market_pct": None,
        }
    market_median = median(samples)
    position = None
    if market_median and your_adr:
        position = round_half_up((your_adr - market_median) / market_median * 100)
    return {
        "market_median": market_median,
        "market_min": min(samples),
        "market_max": max(samples),
        "market_samples": len(samples),
        "position_vs_market_pct": position,
    }


def build_night_reasons(
    occupancy: float,
    arrivals: int,
    departures: int,
    capacity: int,
    weather: WeatherContext | None,
    confidence: Confidence,
) -> list[str]:
    reasons = [f"Occupancy outlook: {occupancy * 100:.0f}% of {capacity} rooms"]
    if arrivals or departures:
        reasons.append(f"Arrivals: {arrivals}, departures: {departures}")

    if weather is not None:
        if not weather.is_fresh:
            reasons.append("Forecast not fresh - refresh to improve accuracy")
        if weather.next_24h is not None:
            reasons.append(f"Weather risk: {weather.next_24h.rain_risk}")

    reasons.append(f"Confidence: {confidence}")
    return reasons[:MAX_NIGHT_REASONS]


class PricingForecastService:
    """Builds an N-night pricing calendar from bookings, weather and market data."""

    def __init__(
        self,
        weather: WeatherProvider,
        bookings: BookingStore,
        rooms: RoomStore,
        market: MarketStore,
        timeout_seconds: float = 5.0,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._weather = weather
        self._bookings = bookings
        self._rooms = rooms
        self._market = market
        self._timeout = timeout_seconds
        self._clock = clock

    async def generate_forecast(self, hotel_id: str, days_ahead: int = 30) -> PricingForecastResult:
        """Generate pricing guidance for the next ``days_ahead`` nights.

        Each upstream source is fetched independently; a failure or timeout
        substitutes that source's default (no weather, no bookings, zero rooms,
        no market samples) instead of aborting the forecast.
        """
        hotel_id = require_hotel_id(hotel_id)
        days_ahead = require_positive_int(days_ahead, "days_ahead")

        now = self._clock()
        window_start = datetime.combine(now.astimezone(timezone.utc).date(), time.min, tzinfo=timezone.utc)
        window_end = window_start + timedelta(days=days_ahead)
        first_night = window_start.date()
        nights = [first_night + timedelta(days=i) for i in range(days_ahead)]

        weather, bookings, rooms_count, rate_samples = await asyncio.gather(
            self._fetch("weather", lambda: self._weather.get_context(hotel_id), None),
            self._fetch(
                "bookings",
                lambda: self._bookings.find_overlapping(
                    hotel_id, window_start, window_end, FORECAST_BOOKING_STATUSES
                ),
                [],
            ),
            self._fetch("rooms", lambda: self._rooms.count_active(hotel_id), 0),
            self._fetch(
                "market",
                lambda: self._market.get_competitor_rates(hotel_id, first_night, window_end.date()),
                [],
            ),
        )

        capacity = max(rooms_count or 0, 1)
        market_by_night = self._group_rates(rate_samples)
        arrivals_by_night = Counter(utc_date(b.check_in) for b in bookings)
        departures_by_night = Counter(utc_date(b.check_out) for b in bookings)
        has_fresh_weather = bool(weather and weather.is_fresh)
        weather_score = score_weather(weather)
        night_weather = self._night_weather(weather)

        calendar: list[PricingCalendarNight] = []
        for offset, night in enumerate(nights):
            overlapping = [b for b in bookings if occupies_night(night, b)]
            bookings_count = len(overlapping)
            arrivals = arrivals_by_night.get(night, 0)
            departures = departures_by_night.get(night, 0)

            occupancy = clamp(bookings_count / capacity, 0.0, 1.0)
            night_adr = adr_estimate([b.room_rate for b in overlapping])

            demand_score = score_demand(occupancy, arrivals, departures)
            adjustment = int(clamp(round_half_up(demand_score + weather_score), -MAX_ADJUSTMENT_PCT, MAX_ADJUSTMENT_PCT))

            confidence = score_confidence(
                bookings_count=bookings_count,
                capacity=capacity,
                has_fresh_weather=has_fresh_weather,
                days_ahead_from_now=offset,
            )

            calendar.append(PricingCalendarNight(
                date=night.isoformat(),
                bookings_count=bookings_count,
                arrivals=arrivals,
                departures=departures,
                occupancy_forecast=occupancy,
                adr_estimate=night_adr,
                weather=night_weather,
                suggested_adjustment_pct=adjustment,
                confidence=confidence,
                reasons=build_night_reasons(occupancy, arrivals, departures, capacity, weather, confidence),
                **market_stats(market_by_night.get(night, []), night_adr),
            ))

        summary = self._summarize(calendar, weather, rooms_count, bookings)

        logger.info(
            f"Pricing forecast for hotel {hotel_id}: {len(calendar)} nights, "
            f"trend={summary.demand_trend}, opportunity={summary.opportunity_pct}%, "
            f"confidence={summary.confidence}"
        )

        return PricingForecastResult(
            generated_at_utc=self._clock(),
            window_start_utc=window_start,
            window_end_utc=window_end,
            source=FORECAST_SOURCE,
            version=FORECAST_VERSION,
            summary=summary,
            calendar=calendar,
        )

    async def _fetch(self, source: str, call: Callable[[], Awaitable[T]], default: T) -> T:
        try:
            return await asyncio.wait_for(call(), timeout=self._timeout)
        except Exception as e:
            logger.warning(f"Pricing forecast: {source} unavailable, using default ({e!r})")
            return default

    def _group_rates(self, samples: list[RateSample]) -> dict[date, list[float]]:
        grouped: dict[date, list[float]] = {}
        for sample in samples:
            grouped.setdefault(sample.night_date, []).append(float(sample.rate))
        return grouped

    def _night_weather(self, weather: WeatherContext | None) -> NightWeather | None:
        if weather is None:
            return None
        next_24h = weather.next_24h
        return NightWeather(
            summary=next_24h.summary if next_24h else None,
            rain_risk=next_24h.rain_risk if next_24h else None,
            is_fresh=weather.is_fresh,
            stale=weather.stale,
            stale_hours=weather.stale_hours,
        )

    def _summarize(
        self,
        calendar: list[PricingCalendarNight],
        weather: WeatherContext | None,
        rooms_count: int,
        bookings: list[BookingRecord],
    ) -> PricingSummary:
        """Summary over the next 7 nights plus window-wide market coverage."""
        next7 = calendar[:SUMMARY_NIGHTS]
        occupancy_avg = (
            sum(n.occupancy_forecast for n in next7) / len(next7) if next7 else None
        )
        trend = demand_trend_for(occupancy_avg)
        opportunity = int(median([n.suggested_adjustment_pct for n in next7])) if next7 else 0

        reasons = []
        if occupancy_avg is not None:
            reasons.append(f"Avg occupancy outlook (7d): {occupancy_avg * 100:.0f}%")
        reasons.append({
            "up": "Demand signal: strengthening",
            "down": "Demand signal: softening",
            "flat": "Demand signal: stable",
        }[trend])
        if weather is not None and not weather.is_fresh:
            reasons.append("Forecast not fresh - refresh for better guidance")
        if not rooms_count:
            reasons.append("Room capacity unknown - occupancy estimate may be less accurate")

        nights_total = len(calendar)
        nights_with_market = sum(1 for n in calendar if n.market_samples > 0)
        coverage = round_half_up(nights_with_market / nights_total * 100) if nights_total else 0

        return PricingSummary(
            demand_trend=trend,
            opportunity_pct=opportunity,
            confidence=summarize_confidence([n.confidence for n in next7], weather),
            adr_base_estimate=adr_estimate([b.room_rate for b in bookings]),
            occupancy_next_7d_avg=occupancy_avg,
            reasons=reasons[:MAX_SUMMARY_REASONS],
            market_coverage_pct=coverage,
            market_samples_total=sum(n.market_samples for n in calendar),
            nights_with_market=nights_with_market,
            nights_total=nights_total,
        )
