from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

reservations = Table(
    "reservations",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("property_id", Integer, nullable=False),
    Column("guest_id", Integer, nullable=False),
    Column("check_in", Date, nullable=False),
    Column("check_out", Date, nullable=False),
    Column("status", String(16), nullable=False),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime),
    Index("ix_reservations_property_check_in", "property_id", "check_in"),
    Index("ix_reservations_property_guest", "property_id", "guest_id"),
)

reservation_history = Table(
    "reservation_history",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("reservation_id", Integer, ForeignKey("reservations.id"), nullable=False),
    Column("status", String(16), nullable=False),
    Column("changed_at", DateTime, nullable=False),
    Index("ix_reservation_history_reservation_id", "reservation_id"),
)

idempotency_keys = Table(
    "idempotency_keys",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("scope", String(32), nullable=False),
    Column("idem_key", String(128), nullable=False),
    Column("request_hash", String(64), nullable=False),
    Column("response_json", JSON),
    Column("http_status", Integer),
    Column("reference_reservation_id", Integer),
    UniqueConstraint("scope", "idem_key", name="uq_idempotency_scope_key"),
)

outbox_events = Table(
    "outbox_events",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("topic", String(64), nullable=False),
    Column("aggregate_id", Integer, nullable=False),
    Column("payload", JSON, nullable=False),
    Column("status", String(16), nullable=False, default="NEW"),
    Column("attempts", Integer, nullable=False, default=0),
    Column("next_attempt_at", DateTime),
    Column("last_error", Text),
    Column("locked_by", String(64)),
    Column("locked_at", DateTime),
    Column("lock_expires_at", DateTime),
    Column("created_at", DateTime),
    Column("updated_at", DateTime),
    Index("ix_outbox_events_status_next_attempt", "status", "next_attempt_at"),
)


def utc_naive(value: datetime | None) -> datetime | None:
    """Datetimes are stored as naive UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
