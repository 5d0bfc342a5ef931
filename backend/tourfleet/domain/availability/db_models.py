from __future__ import annotations

from datetime import date, datetime, time, timezone
from enum import Enum

from sqlalchemy import (
    DDL,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column

# Referenced tables must be registered on the metadata before the foreign keys resolve.
from tourfleet.domain.bookings import db_models as booking_db_models  # noqa: F401
from tourfleet.domain.vehicles import db_models as vehicle_db_models  # noqa: F401
from tourfleet.infra.db import Base

OVERLAP_CONSTRAINT_NAME = "no_overlapping_vehicle_blocks"
BLOCKS_TABLE = "vehicle_availability_blocks"


class BlockType(str, Enum):
    BOOKING = "booking"
    MAINTENANCE = "maintenance"
    HOLD = "hold"
    BUFFER = "buffer"
    BLACKOUT = "blackout"


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class VehicleAvailabilityBlock(Base):
    __tablename__ = BLOCKS_TABLE

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    vehicle_id: Mapped[int] = mapped_column(
        ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False
    )
    block_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    block_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=BlockType.BOOKING.value
    )
    booking_id: Mapped[int | None] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"), nullable=True
    )
    brand_id: Mapped[int | None] = mapped_column(ForeignKey("brands.id"), nullable=True)
    created_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="valid_time_range"),
        CheckConstraint(
            "block_type IN ('booking', 'maintenance', 'hold', 'buffer', 'blackout')",
            name="valid_block_type",
        ),
        Index("idx_availability_vehicle_date", "vehicle_id", "block_date"),
        Index("idx_availability_booking", "booking_id"),
        Index("idx_availability_brand", "brand_id"),
    )

    @property
    def type(self) -> BlockType:
        return BlockType(self.block_type)


# The overlap guarantee lives in the database so concurrent writers across
# processes are serialised by the insert itself. PostgreSQL gets a gist
# exclusion constraint; SQLite gets equivalent abort triggers.
POSTGRES_OVERLAP_DDL = (
    "CREATE EXTENSION IF NOT EXISTS btree_gist",
    f"""
    ALTER TABLE {BLOCKS_TABLE}
    ADD CONSTRAINT {OVERLAP_CONSTRAINT_NAME}
    EXCLUDE USING gist (
        vehicle_id WITH =,
        block_date WITH =,
        tsrange(
            (block_date + start_time)::timestamp,
            (block_date + end_time)::timestamp,
            '[)'
        ) WITH &&
    )
    """,
)

SQLITE_OVERLAP_DDL = (
    f"""
    CREATE TRIGGER IF NOT EXISTS {OVERLAP_CONSTRAINT_NAME}_insert
    BEFORE INSERT ON {BLOCKS_TABLE}
    FOR EACH ROW
    WHEN EXISTS (
        SELECT 1 FROM {BLOCKS_TABLE}
        WHERE vehicle_id = NEW.vehicle_id
          AND block_date = NEW.block_date
          AND start_time < NEW.end_time
          AND end_time > NEW.start_time
    )
    BEGIN
        SELECT RAISE(ABORT, '{OVERLAP_CONSTRAINT_NAME}');
    END
    """,
    f"""
    CREATE TRIGGER IF NOT EXISTS {OVERLAP_CONSTRAINT_NAME}_update
    BEFORE UPDATE OF vehicle_id, block_date, start_time, end_time ON {BLOCKS_TABLE}
    FOR EACH ROW
    WHEN EXISTS (
        SELECT 1 FROM {BLOCKS_TABLE}
        WHERE id != NEW.id
          AND vehicle_id = NEW.vehicle_id
          AND block_date = NEW.block_date
          AND start_time < NEW.end_time
          AND end_time > NEW.start_time
    )
    BEGIN
        SELECT RAISE(ABORT, '{OVERLAP_CONSTRAINT_NAME}');
    END
    """,
)

for _statement in POSTGRES_OVERLAP_DDL:
    event.listen(
        VehicleAvailabilityBlock.__table__,
        "after_create",
        DDL(_statement).execute_if(dialect="postgresql"),
    )
for _statement in SQLITE_OVERLAP_DDL:
    event.listen(
        VehicleAvailabilityBlock.__table__,
        "after_create",
        DDL(_statement).execute_if(dialect="sqlite"),
    )
