"""Weather context provider - the latest synced forecast batch for a hotel."""

import logging
import math
from collections.abc import Callable
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hotelops.models import ExternalSignal, Hotel
from hotelops.schemas.weather import RainRisk, WeatherContext, WeatherLocation, WeatherNext24h
from hotelops.services.cache_service import CacheService

logger = logging.getLogger(__name__)

SIGNAL_TYPE = "WEATHER"
SIGNAL_SOURCE = "openweathermap"

RAIN_HIGH_PCT = 70
RAIN_MEDIUM_PCT = 35


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _number(value) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if math.isfinite(value) else None


def compute_rain_risk(precipitation_prob_max: float | None) -> RainRisk:
    if precipitation_prob_max is None:
        return "unknown"
    if precipitation_prob_max >= RAIN_HIGH_PCT:
        return "high"
    if precipitation_prob_max >= RAIN_MEDIUM_PCT:
        return "medium"
    return "low"


def build_weather_context(
    hotel: Hotel,
    fetched_at_utc: datetime,
    daily_metrics: list[dict],
    now: datetime,
    fresh_hours: float = 6.0,
) -> WeatherContext:
    """Build the context from one fetch batch; ``daily_metrics`` is ordered by local date."""
    stale_hours = (now - fetched_at_utc).total_seconds() / 3600
    is_fresh = stale_hours < fresh_hours

    next_24h = None
    if daily_metrics:
        metrics = daily_metrics[0] or {}
        main = metrics.get("weather_main") if isinstance(metrics.get("weather_main"), str) else None
        desc = metrics.get("weather_desc") if isinstance(metrics.get("weather_desc"), str) else None
        next_24h = WeatherNext24h(
            summary=desc or main,
            high_c=_number(metrics.get("temp_max")),
            low_c=_number(metrics.get("temp_min")),
            rain_risk=compute_rain_risk(_number(metrics.get("precipitation_prob_max"))),
        )

    return WeatherContext(
        synced_at_utc=fetched_at_utc,
        timezone=hotel.timezone or None,
        location=WeatherLocation(lat=hotel.latitude, lon=hotel.longitude),
        days_available=len(daily_metrics),
        is_fresh=is_fresh,
        stale=not is_fresh,
        stale_hours=round(stale_hours, 1),
        next_24h=next_24h,
    )


class SqlWeatherContextProvider:
    """Reads ExternalSignal rows; results are cached briefly in Redis."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        cache: CacheService | None = None,
        fresh_hours: float = 6.0,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._session_factory = session_factory
        self._cache = cache
        self._fresh_hours = fresh_hours
        self._clock = clock

    async def get_context(self, hotel_id: str) -> WeatherContext | None:
        if self._cache is not None:
            cached = await self._cache.get_weather_context(hotel_id)
            if cached is not None:
                return WeatherContext.model_validate(cached)

        context = await self._load(hotel_id)
        if context is not None and self._cache is not None:
            await self._cache.set_weather_context(hotel_id, context.model_dump(mode="json"))
        return context

    async def _load(self, hotel_id: str) -> WeatherContext | None:
        async with self._session_factory() as db:
            hotel = await db.get(Hotel, hotel_id)
            if hotel is None:
                return None

            latest = await db.execute(
                select(ExternalSignal.fetched_at_utc)
                .where(
                    ExternalSignal.hotel_id == hotel_id,
                    ExternalSignal.type == SIGNAL_TYPE,
                    ExternalSignal.source == SIGNAL_SOURCE,
                )
                .order_by(ExternalSignal.fetched_at_utc.desc())
                .limit(1)
            )
            fetched_at = latest.scalar_one_or_none()
            if fetched_at is None:
                return None

            rows = await db.execute(
                select(ExternalSignal.metrics_json)
                .where(
                    ExternalSignal.hotel_id == hotel_id,
                    ExternalSignal.type == SIGNAL_TYPE,
                    ExternalSignal.source == SIGNAL_SOURCE,
                    ExternalSignal.fetched_at_utc == fetched_at,
                )
                .order_by(ExternalSignal.date_local.asc())
            )
            daily_metrics = list(rows.scalars().all())

        return build_weather_context(hotel, fetched_at, daily_metrics, self._clock(), self._fresh_hours)
