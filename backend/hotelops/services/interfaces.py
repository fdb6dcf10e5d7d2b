"""Narrow interfaces between the operations engine and its data sources.

Concrete implementations live in ``hotelops.repositories`` and
``hotelops.services.weather_context_provider``; tests substitute in-memory
fakes. Instances are built once in the application lifespan and passed in.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Protocol

from hotelops.schemas.operations import CreatedTicketRef
from hotelops.schemas.pricing import PricingForecastResult
from hotelops.schemas.ticket import Department, StoredTicket, TicketDraft
from hotelops.schemas.weather import WeatherContext

FORECAST_BOOKING_STATUSES = ("CONFIRMED", "CHECKED_IN", "CHECKED_OUT")


@dataclass(frozen=True)
class BookingRecord:
    id: str
    check_in: datetime
    check_out: datetime
    room_rate: float | None
    status: str


@dataclass(frozen=True)
class RateSample:
    night_date: date
    rate: float


class WeatherProvider(Protocol):
    async def get_context(self, hotel_id: str) -> WeatherContext | None: ...


class BookingStore(Protocol):
    async def find_overlapping(
        self, hotel_id: str, window_start: datetime, window_end: datetime, statuses: tuple[str, ...]
    ) -> list[BookingRecord]: ...

    async def count_arrivals(self, hotel_id: str, start: datetime, end: datetime) -> int: ...

    async def count_departures(self, hotel_id: str, start: datetime, end: datetime) -> int: ...

    async def count_inhouse(self, hotel_id: str) -> int: ...


class RoomStore(Protocol):
    async def count_active(self, hotel_id: str) -> int: ...


class MarketStore(Protocol):
    async def get_competitor_rates(self, hotel_id: str, start: date, end: date) -> list[RateSample]: ...


class SnapshotStore(Protocol):
    async def latest(self, hotel_id: str, version: str) -> PricingForecastResult | None: ...

    async def append(self, hotel_id: str, result: PricingForecastResult) -> None: ...

    async def prune(self, hotel_id: str, older_than: datetime) -> int: ...

    async def list_hotel_ids(self, hotel_id: str | None = None) -> list[str]: ...


class AssigneePicker(Protocol):
    async def pick(self, tx: Any, hotel_id: str, department: Department) -> str | None:
        """Choose an assignee using ``tx``, the transaction the ticket is written in."""
        ...


class TicketStore(Protocol):
    async def find_by_source_key(self, hotel_id: str, source_key: str) -> StoredTicket | None: ...

    async def find_advisory_ticket(
        self, hotel_id: str, user_id: str, advisory_id: str, since: datetime
    ) -> StoredTicket | None: ...

    async def find_weather_action_tickets(
        self, hotel_id: str, advisory_ids: list[str]
    ) -> dict[str, CreatedTicketRef]: ...

    async def create(self, draft: TicketDraft, picker: AssigneePicker) -> StoredTicket:
        """Write conversation, message, ticket and audit entry atomically.

        Raises SourceKeyConflict when ``draft.source_key`` is already taken and
        PersistenceFailure for any other write error. Nothing is kept on failure.
        """
        ...
