from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hotelops.models import CompetitorHotel, CompetitorRateSnapshot
from hotelops.services.interfaces import RateSample


class MarketRepository:
    """Competitor rate samples for active competitors, nights in [start, end)."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get_competitor_rates(self, hotel_id: str, start: date, end: date) -> list[RateSample]:
        async with self._session_factory() as db:
            result = await db.execute(
                select(CompetitorRateSnapshot.night_date, CompetitorRateSnapshot.rate)
                .join(CompetitorHotel, CompetitorHotel.id == CompetitorRateSnapshot.competitor_hotel_id)
                .where(
                    CompetitorHotel.hotel_id == hotel_id,
                    CompetitorHotel.is_active.is_(True),
                    CompetitorRateSnapshot.night_date >= start,
                    CompetitorRateSnapshot.night_date < end,
                )
            )
            return [RateSample(night_date=row.night_date, rate=float(row.rate)) for row in result.all()]
