from datetime import datetime
from typing import Literal

from pydantic import BaseModel

RainRisk = Literal["low", "medium", "high", "unknown"]


class WeatherLocation(BaseModel):
    lat: float | None = None
    lon: float | None = None


class WeatherNext24h(BaseModel):
    summary: str | None = None
    high_c: float | None = None
    low_c: float | None = None
    rain_risk: RainRisk = "unknown"


class WeatherContext(BaseModel):
    synced_at_utc: datetime | None = None
    timezone: str | None = None
    location: WeatherLocation = WeatherLocation()
    days_available: int = 0
    is_fresh: bool = False
    stale: bool = True
    stale_hours: float | None = None
    next_24h: WeatherNext24h | None = None


class WeatherSyncResult(BaseModel):
    hotel_id: str
    days_written: int
    fetched_at_utc: datetime
