"""SQL-backed booking and room reads."""

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hotelops.models import Booking, Room
from hotelops.services.interfaces import BookingRecord


class BookingRepository:
    # One short session per call; the aggregator runs these concurrently.

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def find_overlapping(
        self, hotel_id: str, window_start: datetime, window_end: datetime, statuses: tuple[str, ...]
    ) -> list[BookingRecord]:
        async with self._session_factory() as db:
            result = await db.execute(
                select(Booking).where(
                    Booking.hotel_id == hotel_id,
                    Booking.status.in_(statuses),
                    Booking.check_in_date < window_end,
                    Booking.check_out_date > window_start,
                )
            )
            return [
                BookingRecord(
                    id=b.id,
                    check_in=b.check_in_date,
                    check_out=b.check_out_date,
                    room_rate=float(b.room_rate) if b.room_rate is not None else None,
                    status=b.status,
                )
                for b in result.scalars().all()
            ]

    async def count_arrivals(self, hotel_id: str, start: datetime, end: datetime) -> int:
        return await self._count(
            Booking.hotel_id == hotel_id,
            Booking.status == "CONFIRMED",
            Booking.check_in_date >= start,
            Booking.check_in_date < end,
        )

    async def count_departures(self, hotel_id: str, start: datetime, end: datetime) -> int:
        return await self._count(
            Booking.hotel_id == hotel_id,
            Booking.status == "CHECKED_IN",
            Booking.check_out_date >= start,
            Booking.check_out_date < end,
        )

    async def count_inhouse(self, hotel_id: str) -> int:
        return await self._count(
            Booking.hotel_id == hotel_id,
            Booking.status == "CHECKED_IN",
            Booking.actual_check_in.is_not(None),
            Booking.actual_check_out.is_(None),
        )

    async def _count(self, *conditions) -> int:
        async with self._session_factory() as db:
            result = await db.execute(select(func.count(Booking.id)).where(*conditions))
            return result.scalar() or 0


class RoomRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def count_active(self, hotel_id: str) -> int:
        async with self._session_factory() as db:
            result = await db.execute(
                select(func.count(Room.id)).where(Room.hotel_id == hotel_id, Room.is_active.is_(True))
            )
            return result.scalar() or 0
