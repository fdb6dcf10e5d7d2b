from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from hotelops.schemas.pricing import Confidence, DemandTrend, ResolvedForecast
from hotelops.schemas.ticket import Department
from hotelops.schemas.weather import WeatherContext

AdvisoryPriority = Literal["low", "medium", "high"]
AdvisoryCategory = Literal["Front Desk", "Concierge", "Housekeeping", "F&B", "Maintenance"]


class OpsWindow(BaseModel):
    window_start_utc: datetime
    window_end_utc: datetime
    arrivals_next_24h: int = 0
    departures_next_24h: int = 0
    inhouse_now: int = 0


class WeatherOpsAction(BaseModel):
    title: str
    reason: str
    priority: AdvisoryPriority
    category: AdvisoryCategory | None = None


class WeatherOpsActionsResult(BaseModel):
    actions: list[WeatherOpsAction] = Field(default_factory=list, max_length=5)
    generated_at_utc: datetime


class CreatedTicketRef(BaseModel):
    ticket_id: str
    conversation_id: str
    created_at_utc: datetime


class RoutedAdvisory(BaseModel):
    id: str
    title: str
    reason: str
    priority: AdvisoryPriority
    department: Department
    category: AdvisoryCategory | None = None
    source: Literal["WEATHER_ACTIONS"] = "WEATHER_ACTIONS"
    created_ticket: CreatedTicketRef | None = None


class PricingSnapshotMeta(BaseModel):
    generated_at_utc: datetime
    source: str
    version: str


class PricingSignal(BaseModel):
    demand_trend: DemandTrend
    opportunity_pct: int
    confidence: Confidence
    market_coverage_pct: int = 0
    market_samples_total: int = 0
    nights_with_market: int = 0
    nights_total: int = 0
    note: str


class OpsContextView(BaseModel):
    hotel_id: str
    generated_at_utc: datetime
    ops: OpsWindow
    weather: WeatherContext | None = None
    pricing_forecast: ResolvedForecast
    pricing_snapshot_meta: PricingSnapshotMeta
    pricing_signal: PricingSignal
    advisories: list[RoutedAdvisory] = Field(default_factory=list)
