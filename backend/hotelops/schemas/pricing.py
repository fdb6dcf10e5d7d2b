from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

Confidence = Literal["low", "medium", "high"]
DemandTrend = Literal["down", "flat", "up"]
ForecastMode = Literal["SNAPSHOT", "LIVE_FALLBACK"]


class NightWeather(BaseModel):
    summary: str | None = None
    rain_risk: str | None = None
    is_fresh: bool = False
    stale: bool = True
    stale_hours: float | None = None


class PricingCalendarNight(BaseModel):
    date: str  # YYYY-MM-DD
    bookings_count: int
    arrivals: int
    departures: int
    occupancy_forecast: float = Field(ge=0, le=1)
    adr_estimate: float | None = None
    weather: NightWeather | None = None
    suggested_adjustment_pct: int = Field(ge=-15, le=15)
    confidence: Confidence
    reasons: list[str] = Field(default_factory=list, max_length=5)
    market_median: float | None = None
    market_min: float | None = None
    market_max: float | None = None
    market_samples: int = 0
    position_vs_market_pct: int | None = None

    model_config = {"frozen": True}


class PricingSummary(BaseModel):
    demand_trend: DemandTrend = "flat"
    opportunity_pct: int = 0
    confidence: Confidence = "low"
    adr_base_estimate: float | None = None
    occupancy_next_7d_avg: float | None = None
    reasons: list[str] = Field(default_factory=list)
    market_coverage_pct: int = 0
    market_samples_total: int = 0
    nights_with_market: int = 0
    nights_total: int = 0


class PricingForecastResult(BaseModel):
    generated_at_utc: datetime
    window_start_utc: datetime
    window_end_utc: datetime
    source: str = "INTERNAL_RULES"
    version: str = "v1"
    summary: PricingSummary
    calendar: list[PricingCalendarNight] = Field(default_factory=list)


class ResolvedForecast(PricingForecastResult):
    mode: ForecastMode


class SnapshotJobRequest(BaseModel):
    hotel_id: str | None = None
    days_ahead: int = Field(default=30, ge=1, le=365)
    force: bool = False


class SnapshotJobHotelResult(BaseModel):
    hotel_id: str
    status: Literal["created", "skipped", "failed"]
    generated_at_utc: datetime | None = None
    reason: str | None = None
    error: str | None = None


class SnapshotJobResult(BaseModel):
    results: list[SnapshotJobHotelResult]
    ran_at_utc: datetime
