"""Weather signals and append-only pricing snapshots."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from hotelops.database import Base
from hotelops.models.hotel import _new_id


class ExternalSignal(Base):
    __tablename__ = "external_signals"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=_new_id)
    hotel_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("hotels.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(20), nullable=False)  # WEATHER
    source: Mapped[str] = mapped_column(String(50), nullable=False)
    date_local: Mapped[str] = mapped_column(String(10), nullable=False)  # YYYY-MM-DD
    timezone: Mapped[str | None] = mapped_column(String(64))
    fetched_at_utc: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    metrics_json: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    raw_json: Mapped[dict | None] = mapped_column(JSONB)


class PricingSnapshot(Base):
    __tablename__ = "pricing_snapshots"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=_new_id)
    hotel_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("hotels.id", ondelete="CASCADE"), nullable=False, index=True
    )
    window_start_utc: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    window_end_utc: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    generated_at_utc: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )
    calendar: Mapped[list] = mapped_column(JSONB, nullable=False)
    summary: Mapped[dict] = mapped_column(JSONB, nullable=False)
    source: Mapped[str] = mapped_column(String(30), default="INTERNAL_RULES")
    version: Mapped[str] = mapped_column(String(10), default="v1")
