"""Append-only pricing snapshot storage."""

import logging
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hotelops.errors import PersistenceFailure
from hotelops.models import Hotel, PricingSnapshot
from hotelops.schemas.pricing import PricingForecastResult

logger = logging.getLogger(__name__)


class SnapshotRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def latest(self, hotel_id: str, version: str) -> PricingForecastResult | None:
        async with self._session_factory() as db:
            result = await db.execute(
                select(PricingSnapshot)
                .where(PricingSnapshot.hotel_id == hotel_id, PricingSnapshot.version == version)
                .order_by(PricingSnapshot.generated_at_utc.desc())
                .limit(1)
            )
            row = result.scalar_one_or_none()
            if row is None:
                return None
            return PricingForecastResult.model_validate({
                "generated_at_utc": row.generated_at_utc,
                "window_start_utc": row.window_start_utc,
                "window_end_utc": row.window_end_utc,
                "source": row.source,
                "version": row.version,
                "summary": row.summary,
                "calendar": row.calendar,
            })

    async def append(self, hotel_id: str, result: PricingForecastResult) -> None:
        data = result.model_dump(mode="json")
        async with self._session_factory() as db:
            db.add(PricingSnapshot(
                hotel_id=hotel_id,
                window_start_utc=result.window_start_utc,
                window_end_utc=result.window_end_utc,
                generated_at_utc=result.generated_at_utc,
                calendar=data["calendar"],
                summary=data["summary"],
                source=result.source,
                version=result.version,
            ))
            try:
                await db.commit()
            except SQLAlchemyError as e:
                await db.rollback()
                logger.error(f"Pricing snapshot insert failed for hotel {hotel_id}: {e}")
                raise PersistenceFailure(f"Could not store pricing snapshot for hotel {hotel_id}") from e

    async def prune(self, hotel_id: str, older_than: datetime) -> int:
        async with self._session_factory() as db:
            result = await db.execute(
                delete(PricingSnapshot).where(
                    PricingSnapshot.hotel_id == hotel_id,
                    PricingSnapshot.generated_at_utc < older_than,
                )
            )
            await db.commit()
            return result.rowcount or 0

    async def list_hotel_ids(self, hotel_id: str | None = None) -> list[str]:
        async with self._session_factory() as db:
            query = select(Hotel.id).order_by(Hotel.created_at)
            if hotel_id is not None:
                query = query.where(Hotel.id == hotel_id)
            result = await db.execute(query)
            return [str(h) for h in result.scalars().all()]
