"""Pricing snapshot service - staleness-aware reuse of persisted forecasts.

Snapshots are append-only: a stale snapshot is never updated, a newer row is
written next to it. Two requests that both see a stale snapshot may both
append; readers only need the newest row, so near-duplicates are harmless.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from hotelops.errors import PersistenceFailure
from hotelops.schemas.pricing import (
    PricingForecastResult,
    ResolvedForecast,
    SnapshotJobHotelResult,
    SnapshotJobResult,
)
from hotelops.services.interfaces import SnapshotStore
from hotelops.services.pricing_forecast_service import FORECAST_VERSION, PricingForecastService
from hotelops.services.validation import require_hotel_id, require_positive_int

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE_MINUTES = 90
DEFAULT_RETENTION_DAYS = 14


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PricingSnapshotService:
    """Serves the newest snapshot while fresh, otherwise computes and appends."""

    def __init__(
        self,
        forecaster: PricingForecastService,
        snapshots: SnapshotStore,
        max_age_minutes: int = DEFAULT_MAX_AGE_MINUTES,
        retention_days: int = DEFAULT_RETENTION_DAYS,
        days_ahead: int = 30,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._forecaster = forecaster
        self._snapshots = snapshots
        self._max_age = timedelta(minutes=max_age_minutes)
        self._retention = timedelta(days=retention_days)
        self._days_ahead = days_ahead
        self._clock = clock

    def is_fresh(self, generated_at_utc: datetime) -> bool:
        return self._clock() - generated_at_utc <= self._max_age

    async def resolve_forecast(self, hotel_id: str) -> ResolvedForecast:
        hotel_id = require_hotel_id(hotel_id)

        try:
            latest = await self._snapshots.latest(hotel_id, FORECAST_VERSION)
        except Exception as e:
            logger.warning(f"Pricing snapshot read failed for hotel {hotel_id}, computing live: {e}")
            latest = None
        if latest is not None and self.is_fresh(latest.generated_at_utc):
            return ResolvedForecast(mode="SNAPSHOT", **latest.model_dump())

        computed = await self._forecaster.generate_forecast(hotel_id, self._days_ahead)
        await self._append(hotel_id, computed)
        return ResolvedForecast(mode="LIVE_FALLBACK", **computed.model_dump())

    async def run_snapshot_job(
        self,
        hotel_id: str | None = None,
        days_ahead: int = 30,
        force: bool = False,
    ) -> SnapshotJobResult:
        """Refresh snapshots for one or every hotel.

        Meant to be triggered by an external timer. Fresh snapshots are skipped
        unless ``force`` is set; after a write, that hotel's snapshots older than
        the retention period are pruned. One hotel failing does not stop the run.
        """
        ran_at = self._clock()
        if hotel_id is not None:
            hotel_id = require_hotel_id(hotel_id)
        days_ahead = require_positive_int(days_ahead, "days_ahead")

        results: list[SnapshotJobHotelResult] = []
        for target in await self._snapshots.list_hotel_ids(hotel_id):
            try:
                if not force:
                    latest = await self._snapshots.latest(target, FORECAST_VERSION)
                    if latest is not None and self.is_fresh(latest.generated_at_utc):
                        age_minutes = int((self._clock() - latest.generated_at_utc).total_seconds() // 60)
                        results.append(SnapshotJobHotelResult(
                            hotel_id=target,
                            status="skipped",
                            reason=f"Snapshot is fresh ({age_minutes}m old)",
                        ))
                        continue

                forecast = await self._forecaster.generate_forecast(target, days_ahead)
                await self._append(target, forecast)
                pruned = await self._snapshots.prune(target, self._clock() - self._retention)
                if pruned:
                    logger.info(f"Pruned {pruned} expired pricing snapshots for hotel {target}")

                results.append(SnapshotJobHotelResult(
                    hotel_id=target,
                    status="created",
                    generated_at_utc=forecast.generated_at_utc,
                ))
            except Exception as e:
                logger.error(f"Pricing snapshot job failed for hotel {target}: {e}")
                results.append(SnapshotJobHotelResult(hotel_id=target, status="failed", error=str(e)))

        return SnapshotJobResult(results=results, ran_at_utc=ran_at)

    async def _append(self, hotel_id: str, forecast: PricingForecastResult) -> None:
        try:
            await self._snapshots.append(hotel_id, forecast)
        except PersistenceFailure:
            raise
        except Exception as e:
            raise PersistenceFailure(f"Could not store pricing snapshot for hotel {hotel_id}: {e}") from e
        logger.info(f"Pricing snapshot stored for hotel {hotel_id} at {forecast.generated_at_utc.isoformat()}")
