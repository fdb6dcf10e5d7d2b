"""Unit tests for the rule-based pricing forecast."""

import asyncio
from datetime import date, timedelta

import pytest

from fakes import (
    HOTEL_ID,
    NOW,
    FakeBookingStore,
    FakeMarketStore,
    FakeRoomStore,
    FakeWeatherProvider,
    make_booking,
    make_weather,
)
from hotelops.errors import ValidationFailure
from hotelops.services.interfaces import RateSample
from hotelops.services.pricing_forecast_service import (
    CONFIDENCE_POINTS,
    PricingForecastService,
    market_stats,
    median,
    round_half_up,
    score_confidence,
    score_demand,
    score_weather,
)

TODAY = NOW.date()


def _night(forecast, night: date):
    return next(n for n in forecast.calendar if n.date == night.isoformat())


def _service(clock, weather=None, bookings=None, rooms=None, market=None) -> PricingForecastService:
    return PricingForecastService(
        weather=weather or FakeWeatherProvider(make_weather()),
        bookings=bookings or FakeBookingStore(),
        rooms=rooms or FakeRoomStore(10),
        market=market or FakeMarketStore(),
        timeout_seconds=0.2,
        clock=clock,
    )


class SlowRoomStore:
    async def count_active(self, hotel_id):
        await asyncio.sleep(5)
        return 99


class TestHelpers:
    """Tests for the pure scoring helpers."""

    def test_round_half_up_rounds_ties_upward(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(-2.5) == -2
        assert round_half_up(-8.33) == -8

    def test_median_odd_even_and_empty(self):
        assert median([140, 100, 120]) == 120
        assert median([1, 2]) == 2
        assert median([]) == 0

    def test_score_demand(self):
        assert score_demand(0.9, 3, 1) == 11
        assert score_demand(0.1, 0, 2) == -8
        assert score_demand(0.5, 1, 1) == 0

    def test_score_weather_ignores_stale_forecast(self):
        stale = make_weather(rain_risk="high", summary="thunderstorm", is_fresh=False)
        assert score_weather(stale) == 0

    def test_score_weather_fresh_storm(self):
        fresh = make_weather(rain_risk="high", summary="thunderstorm")
        assert score_weather(fresh) == -4

    def test_confidence_beyond_long_range_is_low(self):
        assert score_confidence(bookings_count=10, capacity=10, has_fresh_weather=True, days_ahead_from_now=22) == "low"
        assert score_confidence(bookings_count=10, capacity=10, has_fresh_weather=True, days_ahead_from_now=5) == "high"

    def test_market_stats_position(self):
        stats = market_stats([100, 120, 140], 110)
        assert stats["market_median"] == 120
        assert stats["market_min"] == 100
        assert stats["market_max"] == 140
        assert stats["market_samples"] == 3
        assert stats["position_vs_market_pct"] == -8


class TestGenerateForecast:
    """Tests for PricingForecastService.generate_forecast."""

    async def test_calendar_covers_requested_nights(self, forecaster):
        forecast = await forecaster.generate_forecast(HOTEL_ID, days_ahead=14)

        assert len(forecast.calendar) == 14
        assert forecast.calendar[0].date == TODAY.isoformat()
        assert forecast.window_end_utc - forecast.window_start_utc == timedelta(days=14)
        assert forecast.source == "INTERNAL_RULES"
        assert forecast.version == "v1"
        assert forecast.summary.nights_total == 14

    async def test_values_stay_within_bounds(self, clock):
        bookings = [make_booking(TODAY + timedelta(days=i % 6), nights=3) for i in range(40)]
        service = _service(
            clock,
            weather=FakeWeatherProvider(make_weather(rain_risk="high", summary="thunderstorm")),
            bookings=FakeBookingStore(bookings),
            rooms=FakeRoomStore(5),
        )

        forecast = await service.generate_forecast(HOTEL_ID)

        for night in forecast.calendar:
            assert 0 <= night.occupancy_forecast <= 1
            assert -15 <= night.suggested_adjustment_pct <= 15
            assert len(night.reasons) <= 5

    async def test_zero_rooms_uses_capacity_of_one(self, clock):
        night = TODAY + timedelta(days=2)
        bookings = [make_booking(night, booking_id=f"b{i}") for i in range(12)]
        service = _service(clock, bookings=FakeBookingStore(bookings), rooms=FakeRoomStore(0))

        forecast = await service.generate_forecast(HOTEL_ID)
        result = _night(forecast, night)

        assert result.bookings_count == 12
        assert result.occupancy_forecast == 1
        assert result.confidence == "low"
        assert "Occupancy outlook: 100% of 1 rooms" in result.reasons
        assert any("Room capacity unknown" in r for r in forecast.summary.reasons)

    async def test_market_position_against_median(self, clock):
        night = TODAY + timedelta(days=1)
        samples = [RateSample(night, 100), RateSample(night, 120), RateSample(night, 140)]
        service = _service(
            clock,
            bookings=FakeBookingStore([make_booking(night, rate=110)]),
            market=FakeMarketStore(samples),
        )

        forecast = await service.generate_forecast(HOTEL_ID)
        result = _night(forecast, night)

        assert result.adr_estimate == 110
        assert result.market_median == 120
        assert result.position_vs_market_pct == -8
        assert forecast.summary.nights_with_market == 1
        assert forecast.summary.market_samples_total == 3
        assert forecast.summary.market_coverage_pct == 3  # 1 of 30 nights

    @pytest.mark.parametrize("fresh", [True, False])
    async def test_confidence_never_rises_with_distance(self, clock, fresh):
        bookings = [make_booking(TODAY, nights=30, booking_id=f"long-{i}") for i in range(8)]
        service = _service(
            clock,
            weather=FakeWeatherProvider(make_weather(is_fresh=fresh)),
            bookings=FakeBookingStore(bookings),
            rooms=FakeRoomStore(10),
        )

        forecast = await service.generate_forecast(HOTEL_ID)
        near = forecast.calendar[5].confidence
        far = forecast.calendar[25].confidence

        assert CONFIDENCE_POINTS[far] <= CONFIDENCE_POINTS[near]
        assert far == "low"

    async def test_cancelled_bookings_are_ignored(self, clock):
        night = TODAY + timedelta(days=3)
        bookings = [make_booking(night, status="CANCELLED"), make_booking(night, status="PENDING")]
        service = _service(clock, bookings=FakeBookingStore(bookings))

        forecast = await service.generate_forecast(HOTEL_ID)

        assert _night(forecast, night).bookings_count == 0

    async def test_failed_sources_fall_back_to_defaults(self, clock):
        service = _service(
            clock,
            weather=FakeWeatherProvider(error=RuntimeError("weather down")),
            market=FakeMarketStore(error=ConnectionError("market down")),
        )

        forecast = await service.generate_forecast(HOTEL_ID, days_ahead=7)

        assert len(forecast.calendar) == 7
        assert all(n.weather is None for n in forecast.calendar)
        assert all(n.market_samples == 0 for n in forecast.calendar)

    async def test_slow_source_times_out_to_default(self, clock):
        service = _service(clock)
        service._rooms = SlowRoomStore()

        forecast = await service.generate_forecast(HOTEL_ID, days_ahead=3)

        assert "Occupancy outlook: 0% of 1 rooms" in forecast.calendar[0].reasons

    async def test_stale_weather_is_flagged(self, clock):
        service = _service(clock, weather=FakeWeatherProvider(make_weather(is_fresh=False)))

        forecast = await service.generate_forecast(HOTEL_ID, days_ahead=3)

        assert "Forecast not fresh - refresh to improve accuracy" in forecast.calendar[0].reasons
        assert forecast.calendar[0].weather.stale is True

    async def test_summary_trend_up_for_busy_week(self, clock):
        bookings = [make_booking(TODAY, nights=10, booking_id=f"busy-{i}") for i in range(9)]
        service = _service(clock, bookings=FakeBookingStore(bookings), rooms=FakeRoomStore(10))

        forecast = await service.generate_forecast(HOTEL_ID)

        assert forecast.summary.demand_trend == "up"
        assert forecast.summary.opportunity_pct > 0

    @pytest.mark.parametrize("hotel_id", ["", "   ", "not-a-uuid", None])
    async def test_rejects_invalid_hotel_id(self, forecaster, hotel_id):
        with pytest.raises(ValidationFailure) as exc:
            await forecaster.generate_forecast(hotel_id)
        assert exc.value.field == "hotel_id"

    async def test_rejects_non_positive_days_ahead(self, forecaster):
        with pytest.raises(ValidationFailure) as exc:
            await forecaster.generate_forecast(HOTEL_ID, days_ahead=0)
        assert exc.value.field == "days_ahead"
