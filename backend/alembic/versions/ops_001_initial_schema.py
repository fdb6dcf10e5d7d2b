"""Ops 001: hotels, bookings, market rates, weather signals, pricing snapshots, tickets

Revision ID: ops_001
Revises:
Create Date: 2026-02-23
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision = "ops_001"
down_revision = None
branch_labels = None
depends_on = None


def _id() -> sa.Column:
    return sa.Column("id", UUID(as_uuid=False), primary_key=True, server_default=sa.text("gen_random_uuid()"))


def _hotel_fk(index: bool = False) -> sa.Column:
    return sa.Column(
        "hotel_id", UUID(as_uuid=False), sa.ForeignKey("hotels.id", ondelete="CASCADE"), nullable=False, index=index
    )


def upgrade() -> None:
    # --- hotels ---
    op.create_table(
        "hotels",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("city", sa.String(100)),
        sa.Column("country", sa.String(100)),
        sa.Column("timezone", sa.String(64)),
        sa.Column("latitude", sa.Float),
        sa.Column("longitude", sa.Float),
        sa.Column("location_updated_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- rooms ---
    op.create_table(
        "rooms",
        _id(),
        _hotel_fk(index=True),
        sa.Column("number", sa.String(20), nullable=False),
        sa.Column("is_active", sa.Boolean, server_default="true"),
    )

    # --- users ---
    op.create_table(
        "users",
        _id(),
        _hotel_fk(index=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("role", sa.String(20), server_default="STAFF"),
        sa.Column("module_permissions", JSONB, server_default="[]"),
        sa.Column("is_active", sa.Boolean, server_default="true"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- bookings ---
    op.create_table(
        "bookings",
        _id(),
        _hotel_fk(),
        sa.Column("room_id", UUID(as_uuid=False), sa.ForeignKey("rooms.id")),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("check_in_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("check_out_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("actual_check_in", sa.DateTime(timezone=True)),
        sa.Column("actual_check_out", sa.DateTime(timezone=True)),
        sa.Column("room_rate", sa.Numeric(10, 2)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("idx_bookings_hotel_status_checkin", "bookings", ["hotel_id", "status", "check_in_date"])
    op.create_index("idx_bookings_hotel_status_checkout", "bookings", ["hotel_id", "status", "check_out_date"])

    # --- competitor_hotels / competitor_rate_snapshots ---
    op.create_table(
        "competitor_hotels",
        _id(),
        _hotel_fk(index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean, server_default="true"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "competitor_rate_snapshots",
        _id(),
        sa.Column(
            "competitor_hotel_id",
            UUID(as_uuid=False),
            sa.ForeignKey("competitor_hotels.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("night_date", sa.Date, nullable=False),
        sa.Column("rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(3), server_default="USD"),
        sa.Column("source", sa.String(50)),
        sa.Column("fetched_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("idx_competitor_rates_night", "competitor_rate_snapshots", ["competitor_hotel_id", "night_date"])

    # --- external_signals ---
    op.create_table(
        "external_signals",
        _id(),
        _hotel_fk(),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("source", sa.String(50), nullable=False),
        sa.Column("date_local", sa.String(10), nullable=False),
        sa.Column("timezone", sa.String(64)),
        sa.Column("fetched_at_utc", sa.DateTime(timezone=True), nullable=False),
        sa.Column("metrics_json", JSONB, nullable=False, server_default="{}"),
        sa.Column("raw_json", JSONB),
    )
    op.create_index(
        "idx_external_signals_batch", "external_signals", ["hotel_id", "type", "source", "fetched_at_utc"]
    )

    # --- pricing_snapshots ---
    op.create_table(
        "pricing_snapshots",
        _id(),
        _hotel_fk(index=True),
        sa.Column("window_start_utc", sa.DateTime(timezone=True), nullable=False),
        sa.Column("window_end_utc", sa.DateTime(timezone=True), nullable=False),
        sa.Column("generated_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("calendar", JSONB, nullable=False),
        sa.Column("summary", JSONB, nullable=False),
        sa.Column("source", sa.String(30), server_default="INTERNAL_RULES"),
        sa.Column("version", sa.String(10), server_default="v1"),
    )
    op.create_index("idx_pricing_snapshots_generated", "pricing_snapshots", ["generated_at_utc"])
    op.create_index(
        "idx_pricing_snapshots_latest", "pricing_snapshots", ["hotel_id", "version", "generated_at_utc"]
    )

    # --- conversations / messages ---
    op.create_table(
        "conversations",
        _id(),
        _hotel_fk(),
        sa.Column("subject", sa.String(120), nullable=False),
        sa.Column("status", sa.String(20), server_default="OPEN"),
        sa.Column("last_message_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "messages",
        _id(),
        sa.Column(
            "conversation_id", UUID(as_uuid=False), sa.ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("sender_type", sa.String(20), nullable=False),
        sa.Column("sender_user_id", UUID(as_uuid=False), sa.ForeignKey("users.id")),
        sa.Column("body", sa.Text, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- tickets ---
    op.create_table(
        "tickets",
        _id(),
        _hotel_fk(),
        sa.Column(
            "conversation_id", UUID(as_uuid=False), sa.ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("type", sa.String(30), server_default="GENERAL_INQUIRY"),
        sa.Column("department", sa.String(20), nullable=False),
        sa.Column("category", sa.String(20), nullable=False),
        sa.Column("priority", sa.String(10), nullable=False),
        sa.Column("status", sa.String(20), server_default="OPEN"),
        sa.Column("assigned_to_id", UUID(as_uuid=False), sa.ForeignKey("users.id")),
        sa.Column("source_key", sa.String(120)),
        sa.Column("details", JSONB),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_unique_constraint("uq_tickets_hotel_source_key", "tickets", ["hotel_id", "source_key"])
    op.create_index("idx_tickets_department_load", "tickets", ["hotel_id", "department", "status", "assigned_to_id"])
    op.create_index(
        "idx_tickets_advisory",
        "tickets",
        [sa.text("hotel_id"), sa.text("(details ->> 'advisory_id')")],
    )

    # --- activity_logs ---
    op.create_table(
        "activity_logs",
        _id(),
        sa.Column("user_id", UUID(as_uuid=False), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("action", sa.String(60), nullable=False),
        sa.Column("entity", sa.String(40), nullable=False),
        sa.Column("entity_id", sa.String(64)),
        sa.Column("details", JSONB),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("idx_activity_logs_user_action", "activity_logs", ["user_id", "action", "created_at"])


def downgrade() -> None:
    op.drop_table("activity_logs")
    op.drop_table("tickets")
    op.drop_table("messages")
    op.drop_table("conversations")
    op.drop_table("pricing_snapshots")
    op.drop_table("external_signals")
    op.drop_table("competitor_rate_snapshots")
    op.drop_table("competitor_hotels")
    op.drop_table("bookings")
    op.drop_table("users")
    op.drop_table("rooms")
    op.drop_table("hotels")
