"""Service wiring and request dependencies.

Services are built once in the application lifespan and stored on
``app.state.services``; routes receive them through ``get_services``.
"""

from dataclasses import dataclass

from fastapi import Header, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hotelops.config import Settings
from hotelops.errors import ValidationFailure
from hotelops.repositories.booking_repository import BookingRepository, RoomRepository
from hotelops.repositories.market_repository import MarketRepository
from hotelops.repositories.snapshot_repository import SnapshotRepository
from hotelops.repositories.ticket_repository import DepartmentLoadPicker, TicketRepository
from hotelops.services.cache_service import CacheService
from hotelops.services.openweather_client import OpenWeatherClient
from hotelops.services.operations_context_service import OperationsContextService
from hotelops.services.pricing_forecast_service import PricingForecastService
from hotelops.services.pricing_snapshot_service import PricingSnapshotService
from hotelops.services.ticketing_service import TicketingService
from hotelops.services.weather_context_provider import SqlWeatherContextProvider
from hotelops.services.weather_signal_service import WeatherSignalService


@dataclass
class Services:
    forecaster: PricingForecastService
    snapshots: PricingSnapshotService
    operations: OperationsContextService
    ticketing: TicketingService
    weather: SqlWeatherContextProvider
    weather_sync: WeatherSignalService | None = None
    cache: CacheService | None = None
    openweather: OpenWeatherClient | None = None

    async def close(self):
        if self.openweather is not None:
            await self.openweather.close()
        if self.cache is not None:
            await self.cache.close()


@dataclass
class Actor:
    hotel_id: str
    user_id: str


def build_services(session_factory: async_sessionmaker[AsyncSession], settings: Settings) -> Services:
    cache = CacheService(settings.redis_url, settings.weather_cache_ttl_seconds)
    openweather = OpenWeatherClient(
        api_key=settings.openweather_api_key,
        base_url=settings.openweather_base_url,
        geo_url=settings.openweather_geo_url,
        timeout=settings.openweather_timeout_seconds,
    )

    weather = SqlWeatherContextProvider(session_factory, cache, fresh_hours=settings.weather_fresh_hours)
    bookings = BookingRepository(session_factory)
    tickets = TicketRepository(session_factory)

    forecaster = PricingForecastService(
        weather=weather,
        bookings=bookings,
        rooms=RoomRepository(session_factory),
        market=MarketRepository(session_factory),
        timeout_seconds=settings.dependency_timeout_seconds,
    )
    snapshots = PricingSnapshotService(
        forecaster,
        SnapshotRepository(session_factory),
        max_age_minutes=settings.pricing_snapshot_max_age_minutes,
        retention_days=settings.pricing_snapshot_retention_days,
        days_ahead=settings.pricing_days_ahead,
    )

    return Services(
        forecaster=forecaster,
        snapshots=snapshots,
        operations=OperationsContextService(
            bookings=bookings,
            weather=weather,
            snapshots=snapshots,
            tickets=tickets,
            timeout_seconds=settings.dependency_timeout_seconds,
            forecast_timeout_seconds=settings.forecast_timeout_seconds,
        ),
        ticketing=TicketingService(
            tickets,
            DepartmentLoadPicker(),
            advisory_dedup_hours=settings.advisory_dedup_hours,
        ),
        weather=weather,
        weather_sync=WeatherSignalService(session_factory, openweather, cache),
        cache=cache,
        openweather=openweather,
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


async def get_actor(
    x_hotel_id: str | None = Header(None),
    x_user_id: str | None = Header(None),
) -> Actor:
    """The calling staff member, as forwarded by the gateway."""
    if not x_hotel_id or not x_hotel_id.strip():
        raise ValidationFailure("X-Hotel-Id header is required", field="hotel_id")
    if not x_user_id or not x_user_id.strip():
        raise ValidationFailure("X-User-Id header is required", field="user_id")
    return Actor(hotel_id=x_hotel_id.strip(), user_id=x_user_id.strip())
