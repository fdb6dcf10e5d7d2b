"""Pytest configuration and shared fixtures."""

import pytest

from fakes import (
    FakeBookingStore,
    FakeMarketStore,
    FakePicker,
    FakeRoomStore,
    FakeSnapshotStore,
    FakeTicketStore,
    FakeWeatherProvider,
    FixedClock,
    make_weather,
)
from hotelops.services.operations_context_service import OperationsContextService
from hotelops.services.pricing_forecast_service import PricingForecastService
from hotelops.services.pricing_snapshot_service import PricingSnapshotService
from hotelops.services.ticketing_service import TicketingService


@pytest.fixture
def clock() -> FixedClock:
    """A clock pinned to 2026-03-10 12:00 UTC; call ``advance`` to move it."""
    return FixedClock()


@pytest.fixture
def weather_provider() -> FakeWeatherProvider:
    return FakeWeatherProvider(make_weather())


@pytest.fixture
def booking_store() -> FakeBookingStore:
    return FakeBookingStore()


@pytest.fixture
def room_store() -> FakeRoomStore:
    return FakeRoomStore(10)


@pytest.fixture
def market_store() -> FakeMarketStore:
    return FakeMarketStore()


@pytest.fixture
def snapshot_store() -> FakeSnapshotStore:
    return FakeSnapshotStore()


@pytest.fixture
def ticket_store(clock) -> FakeTicketStore:
    return FakeTicketStore(clock)


@pytest.fixture
def picker() -> FakePicker:
    return FakePicker()


@pytest.fixture
def forecaster(weather_provider, booking_store, room_store, market_store, clock) -> PricingForecastService:
    return PricingForecastService(
        weather=weather_provider,
        bookings=booking_store,
        rooms=room_store,
        market=market_store,
        timeout_seconds=0.5,
        clock=clock,
    )


@pytest.fixture
def snapshot_service(forecaster, snapshot_store, clock) -> PricingSnapshotService:
    return PricingSnapshotService(forecaster, snapshot_store, clock=clock)


@pytest.fixture
def ticketing(ticket_store, picker, clock) -> TicketingService:
    return TicketingService(ticket_store, picker, clock=clock)


@pytest.fixture
def operations(booking_store, weather_provider, snapshot_service, ticket_store, clock) -> OperationsContextService:
    return OperationsContextService(
        bookings=booking_store,
        weather=weather_provider,
        snapshots=snapshot_service,
        tickets=ticket_store,
        timeout_seconds=0.5,
        clock=clock,
    )
