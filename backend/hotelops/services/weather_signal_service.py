"""Weather signal sync - pulls the OpenWeather forecast into ExternalSignal rows.

A sync geocodes the hotel when coordinates are missing, aggregates the
3-hourly forecast per hotel-local date and appends one row per date. Every
row of a sync shares ``fetched_at_utc``, which is how readers find the batch.
"""

import logging
from collections import Counter
from collections.abc import Callable
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hotelops.errors import DependencyUnavailable, PersistenceFailure, ValidationFailure
from hotelops.models import ExternalSignal, Hotel
from hotelops.schemas.weather import WeatherSyncResult
from hotelops.services.cache_service import CacheService
from hotelops.services.openweather_client import OpenWeatherClient
from hotelops.services.validation import require_hotel_id
from hotelops.services.weather_context_provider import SIGNAL_SOURCE, SIGNAL_TYPE

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _avg(values: list[float]) -> float | None:
    return round(sum(values) / len(values), 2) if values else None


def _most_frequent(values: list[str | None]) -> str | None:
    counts = Counter(v for v in values if v)
    # Ties go to the value seen first
    return counts.most_common(1)[0][0] if counts else None


def _numbers(entries: list[dict], *path: str) -> list[float]:
    values = []
    for entry in entries:
        value = entry
        for key in path:
            value = value.get(key) if isinstance(value, dict) else None
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            values.append(float(value))
    return values


def aggregate_forecast(forecast: dict, tz_name: str) -> list[dict]:
    """Group forecast entries by hotel-local date, ordered by date."""
    tz = ZoneInfo(tz_name)
    buckets: dict[str, list[dict]] = {}
    for entry in forecast.get("list") or []:
        local_date = datetime.fromtimestamp(entry["dt"], tz=timezone.utc).astimezone(tz).date().isoformat()
        buckets.setdefault(local_date, []).append(entry)

    days = []
    for local_date in sorted(buckets):
        entries = buckets[local_date]
        temp_min = _numbers(entries, "main", "temp_min")
        temp_max = _numbers(entries, "main", "temp_max")
        pop = _numbers(entries, "pop")
        conditions = [(e.get("weather") or [{}])[0] for e in entries]
        days.append({
            "date_local": local_date,
            "metrics": {
                "temp_min": round(min(temp_min), 2) if temp_min else None,
                "temp_max": round(max(temp_max), 2) if temp_max else None,
                "humidity_avg": _avg(_numbers(entries, "main", "humidity")),
                "wind_speed_avg": _avg(_numbers(entries, "wind", "speed")),
                "precipitation_prob_max": round(max(pop) * 100, 2) if pop else None,
                "weather_main": _most_frequent([c.get("main") for c in conditions]),
                "weather_desc": _most_frequent([c.get("description") for c in conditions]),
            },
            "raw": {
                "entries": len(entries),
                "forecast_times_utc": [
                    datetime.fromtimestamp(e["dt"], tz=timezone.utc).isoformat() for e in entries
                ],
            },
        })
    return days


class WeatherSignalService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        client: OpenWeatherClient,
        cache: CacheService | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._session_factory = session_factory
        self._client = client
        self._cache = cache
        self._clock = clock

    async def sync_hotel_weather(self, hotel_id: str) -> WeatherSyncResult:
        hotel_id = require_hotel_id(hotel_id)
        if not self._client.configured:
            raise DependencyUnavailable("openweather", "OPENWEATHER_API_KEY is not configured")

        async with self._session_factory() as db:
            hotel = await db.get(Hotel, hotel_id)
            if hotel is None:
                raise ValidationFailure(f"Hotel {hotel_id} not found", field="hotel_id")
            if not hotel.city or not hotel.country or not hotel.timezone:
                raise ValidationFailure("Hotel city, country, and timezone are required", field="hotel_id")
            try:
                ZoneInfo(hotel.timezone)
            except (ZoneInfoNotFoundError, ValueError):
                raise ValidationFailure(f"Unknown timezone '{hotel.timezone}'", field="timezone")

            if hotel.latitude is None or hotel.longitude is None:
                coords = await self._client.geocode(hotel.city, hotel.country)
                if coords is None:
                    raise ValidationFailure(
                        f"No geocoding result for {hotel.city}, {hotel.country}. "
                        "Try an ISO country code (example: US).",
                        field="country",
                    )
                hotel.latitude, hotel.longitude = coords
                hotel.location_updated_at = self._clock()
                logger.info(f"Geocoded hotel {hotel_id} to {coords[0]:.4f},{coords[1]:.4f}")

            forecast = await self._client.forecast(hotel.latitude, hotel.longitude)
            days = aggregate_forecast(forecast, hotel.timezone)
            fetched_at = self._clock()

            for day in days:
                db.add(ExternalSignal(
                    hotel_id=hotel_id,
                    type=SIGNAL_TYPE,
                    source=SIGNAL_SOURCE,
                    date_local=day["date_local"],
                    timezone=hotel.timezone,
                    fetched_at_utc=fetched_at,
                    metrics_json=day["metrics"],
                    raw_json=day["raw"],
                ))
            try:
                await db.commit()
            except Exception as e:
                await db.rollback()
                logger.error(f"Weather sync for hotel {hotel_id} could not be stored: {e}")
                raise PersistenceFailure(f"Could not store weather signals for hotel {hotel_id}") from e

        if self._cache is not None:
            await self._cache.invalidate_weather_context(hotel_id)

        logger.info(f"Weather sync for hotel {hotel_id}: {len(days)} days stored")
        return WeatherSyncResult(hotel_id=hotel_id, days_written=len(days), fetched_at_utc=fetched_at)
