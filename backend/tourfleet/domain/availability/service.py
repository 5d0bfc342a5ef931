import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from sqlalchemy import ColumnElement, and_, delete, func, not_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tourfleet.domain.availability import clock
from tourfleet.domain.availability.db_models import (
    OVERLAP_CONSTRAINT_NAME,
    BlockType,
    VehicleAvailabilityBlock,
)
from tourfleet.domain.availability_rules import service as rules_service
from tourfleet.domain.bookings.db_models import Booking
from tourfleet.domain.errors import BlockConflictError, BlockNotFoundError, BlockValidationError
from tourfleet.domain.vehicles import service as vehicle_service
from tourfleet.domain.vehicles.db_models import Vehicle, VehicleBrand
from tourfleet.infra.metrics import metrics
from tourfleet.settings import settings

logger = logging.getLogger(__name__)

EXCLUSION_VIOLATION_SQLSTATE = "23P01"
DEFAULT_HOLD_NOTES = "Temporary hold for booking in progress"
PRE_BUFFER_NOTES = "Pre-booking buffer"
POST_BUFFER_NOTES = "Post-booking buffer"
HOLD_CONFLICT_DETAIL = "Time slot is no longer available. Another booking was just made for this time."
MAINTENANCE_CONFLICT_DETAIL = "Cannot create maintenance block - time slot has existing bookings"
BOOKING_BLOCK_DELETE_DETAIL = "Cannot delete booking blocks directly. Cancel the booking instead."
PAST_DATE_REASON = "Cannot book tours in the past"
ALL_BOOKED_REASON = "All suitable vehicles are booked for this time slot"

BLOCK_TRANSITIONS = {
    BlockType.HOLD.value: {BlockType.BOOKING.value},
    BlockType.BOOKING.value: set(),
    BlockType.MAINTENANCE.value: set(),
    BlockType.BUFFER.value: set(),
    BlockType.BLACKOUT.value: set(),
}


@dataclass(frozen=True)
class VehicleAvailability:
    available: bool
    conflicts: list[VehicleAvailabilityBlock]


@dataclass
class VehicleWithAvailability:
    id: int
    name: str
    make: str
    model: str
    capacity: int
    vehicle_type: str
    license_plate: str | None
    status: str
    available_to_all_brands: bool
    brand_ids: list[int] = field(default_factory=list)
    conflicts: list[VehicleAvailabilityBlock] = field(default_factory=list)


@dataclass(frozen=True)
class VehicleOption:
    id: int
    name: str
    capacity: int


@dataclass
class AvailabilityCheckResult:
    available: bool
    vehicle_id: int | None = None
    vehicle_name: str | None = None
    vehicle_capacity: int | None = None
    conflicts: list[str] = field(default_factory=list)
    available_vehicles: list[VehicleOption] = field(default_factory=list)

    @classmethod
    def rejected(cls, reasons: list[str]) -> "AvailabilityCheckResult":
        return cls(available=False, conflicts=list(reasons))


@dataclass(frozen=True)
class TimeSlot:
    start: time
    end: time
    available: bool
    vehicle_id: int | None = None
    vehicle_name: str | None = None


@dataclass(frozen=True)
class CalendarBlock:
    block: VehicleAvailabilityBlock
    vehicle_name: str
    booking_number: str | None = None


def assert_valid_block_transition(current: str, target: str) -> None:
    allowed = BLOCK_TRANSITIONS.get(current)
    if allowed is None:
        raise BlockValidationError(f"Unknown block type: {current}")
    if target not in allowed:
        raise BlockValidationError(f"Cannot change block type from {current} to {target}")


def is_vehicle_overlap_integrity_error(exc: BaseException) -> bool:
    """True when ``exc`` was raised by the vehicle block overlap constraint.

    PostgreSQL reports the exclusion constraint through the driver diagnostics
    and SQLSTATE 23P01. SQLite raises the constraint name from the abort
    trigger, so it only shows up in the message.
    """
    if not isinstance(exc, IntegrityError):
        return False
    orig = getattr(exc, "orig", None)
    diag = getattr(orig, "diag", None)
    constraint_name = getattr(diag, "constraint_name", None)
    if constraint_name:
        return constraint_name == OVERLAP_CONSTRAINT_NAME
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate == EXCLUSION_VIOLATION_SQLSTATE:
        return True
    return OVERLAP_CONSTRAINT_NAME in str(orig if orig is not None else exc)


def operating_today() -> date:
    return datetime.now(ZoneInfo(settings.operating_timezone)).date()


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def _normalize_datetime(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _hold_expiry_threshold(now: datetime | None) -> datetime:
    current = _normalize_datetime(now) if now is not None else _utcnow()
    return current - timedelta(minutes=settings.hold_expiration_minutes)


def _expired_hold_clause(threshold: datetime) -> ColumnElement[bool]:
    return and_(
        VehicleAvailabilityBlock.block_type == BlockType.HOLD.value,
        VehicleAvailabilityBlock.booking_id.is_(None),
        VehicleAvailabilityBlock.created_at < threshold,
    )


def _overlap_filters(block_date: date, start: time, end: time) -> list[ColumnElement[bool]]:
    return [
        VehicleAvailabilityBlock.block_date == block_date,
        VehicleAvailabilityBlock.start_time < end,
        VehicleAvailabilityBlock.end_time > start,
    ]


def _require_window(start: time, end: time) -> None:
    if end <= start:
        raise BlockValidationError("end_time must be after start_time")


def _operating_hours_reason() -> str:
    return f"Tours must be between {settings.operating_day_start} and {settings.operating_day_end}"


async def check_vehicle_availability(
    session: AsyncSession,
    vehicle_id: int,
    block_date: date,
    start_time: str | time,
    end_time: str | time,
    *,
    now: datetime | None = None,
) -> VehicleAvailability:
    """Blocks on ``vehicle_id`` that overlap the half-open window.

    Unconverted holds older than the TTL are ignored even if a sweep has not
    removed them yet.
    """
    start = clock.parse_time(start_time)
    end = clock.parse_time(end_time)
    threshold = _hold_expiry_threshold(now)
    stmt = (
        select(VehicleAvailabilityBlock)
        .where(
            VehicleAvailabilityBlock.vehicle_id == vehicle_id,
            *_overlap_filters(block_date, start, end),
            not_(_expired_hold_clause(threshold)),
        )
        .order_by(VehicleAvailabilityBlock.start_time)
    )
    conflicts = list((await session.execute(stmt)).scalars().all())
    return VehicleAvailability(available=not conflicts, conflicts=conflicts)


async def _delete_expired_holds(session: AsyncSession, threshold: datetime) -> int:
    expired_ids = (
        await session.execute(select(VehicleAvailabilityBlock.id).where(_expired_hold_clause(threshold)))
    ).scalars().all()
    if not expired_ids:
        return 0
    deletion = (
        delete(VehicleAvailabilityBlock)
        .where(VehicleAvailabilityBlock.id.in_(expired_ids))
        .returning(VehicleAvailabilityBlock.id)
    )
    result = await session.execute(deletion)
    return len(result.scalars().all())


def _record_expired_cleanup(deleted: int, threshold: datetime) -> None:
    metrics.record_expired_holds_cleaned(deleted)
    logger.info(
        "expired_holds_cleaned",
        extra={"extra": {"deleted": deleted, "threshold": threshold.isoformat()}},
    )


async def cleanup_expired_holds(session: AsyncSession, *, now: datetime | None = None) -> int:
    threshold = _hold_expiry_threshold(now)
    deleted = await _delete_expired_holds(session, threshold)
    if deleted:
        await session.commit()
        _record_expired_cleanup(deleted, threshold)
    return deleted


async def _sweep_expired_holds(session: AsyncSession, *, now: datetime | None = None) -> int:
    """Opportunistic sweep that keeps the caller's unit of work intact.

    Pending changes are flushed so the sweep runs in a SAVEPOINT of the caller's
    transaction and is committed or rolled back with it. A session with no open
    transaction gets a short transaction of its own.
    """
    threshold = _hold_expiry_threshold(now)
    if session.new or session.dirty or session.deleted:
        await session.flush()
    transaction_ctx = session.begin_nested() if session.in_transaction() else session.begin()
    async with transaction_ctx:
        deleted = await _delete_expired_holds(session, threshold)
    if deleted:
        _record_expired_cleanup(deleted, threshold)
    return deleted


async def _brand_ids_by_vehicle(session: AsyncSession, vehicle_ids: list[int]) -> dict[int, list[int]]:
    if not vehicle_ids:
        return {}
    stmt = (
        select(VehicleBrand.vehicle_id, VehicleBrand.brand_id)
        .where(VehicleBrand.vehicle_id.in_(vehicle_ids))
        .order_by(VehicleBrand.vehicle_id, VehicleBrand.brand_id)
    )
    brand_map: dict[int, list[int]] = {}
    for vehicle_id, brand_id in (await session.execute(stmt)).all():
        brand_map.setdefault(vehicle_id, []).append(brand_id)
    return brand_map


async def find_available_vehicles(
    session: AsyncSession,
    *,
    block_date: date,
    start_time: str | time,
    end_time: str | time,
    party_size: int,
    brand_id: int | None = None,
    now: datetime | None = None,
) -> list[VehicleWithAvailability]:
    candidates = await vehicle_service.list_candidate_vehicles(
        session, party_size=party_size, brand_id=brand_id
    )
    brand_map = await _brand_ids_by_vehicle(session, [vehicle.id for vehicle in candidates])

    available: list[VehicleWithAvailability] = []
    for vehicle in candidates:
        check = await check_vehicle_availability(
            session, vehicle.id, block_date, start_time, end_time, now=now
        )
        if not check.available:
            continue
        available.append(
            VehicleWithAvailability(
                id=vehicle.id,
                name=vehicle.name,
                make=vehicle.make,
                model=vehicle.model,
                capacity=vehicle.capacity,
                vehicle_type=vehicle.vehicle_type,
                license_plate=vehicle.license_plate,
                status=vehicle.status,
                available_to_all_brands=vehicle.available_to_all_brands,
                brand_ids=brand_map.get(vehicle.id, []),
                conflicts=check.conflicts,
            )
        )
    return available


async def _has_booked_capacity(
    session: AsyncSession,
    *,
    block_date: date,
    start: time,
    end: time,
    party_size: int,
    brand_id: int | None,
    now: datetime | None,
) -> bool:
    stmt = (
        select(func.count(VehicleAvailabilityBlock.id))
        .select_from(VehicleAvailabilityBlock)
        .join(Vehicle, Vehicle.id == VehicleAvailabilityBlock.vehicle_id)
        .where(
            *vehicle_service.candidate_vehicle_filters(party_size, brand_id),
            *_overlap_filters(block_date, start, end),
            not_(_expired_hold_clause(_hold_expiry_threshold(now))),
        )
    )
    return bool(await session.scalar(stmt))


async def check_availability(
    session: AsyncSession,
    *,
    block_date: date,
    start_time: str | time,
    duration_hours: float,
    party_size: int,
    brand_id: int | None = None,
    today: date | None = None,
    now: datetime | None = None,
) -> AvailabilityCheckResult:
    """Decide whether a tour can be booked and pick the smallest vehicle that fits.

    Gates run in order and the first failing gate returns its reasons.
    """
    try:
        await _sweep_expired_holds(session, now=now)
    except SQLAlchemyError as exc:
        logger.warning(
            "expired_hold_cleanup_failed",
            extra={"extra": {"error": type(exc).__name__}},
        )

    start_minutes = clock.time_to_minutes(clock.parse_time(start_time))
    duration_minutes = clock.hours_to_minutes(duration_hours)
    if duration_minutes <= 0:
        raise BlockValidationError("duration_hours must be positive")
    end_minutes = start_minutes + duration_minutes

    if not clock.is_within_operating_hours(
        start_minutes, end_minutes, settings.operating_day_start, settings.operating_day_end
    ):
        metrics.record_availability_check("outside_hours")
        return AvailabilityCheckResult.rejected([_operating_hours_reason()])

    start = clock.minutes_to_time(start_minutes)
    end = clock.minutes_to_time(end_minutes)

    if block_date < (today or operating_today()):
        metrics.record_availability_check("past_date")
        return AvailabilityCheckResult.rejected([PAST_DATE_REASON])

    blackout_reasons = await rules_service.blackout_reasons(session, block_date)
    if blackout_reasons:
        metrics.record_availability_check("blackout")
        return AvailabilityCheckResult.rejected(blackout_reasons)

    vehicles = await find_available_vehicles(
        session,
        block_date=block_date,
        start_time=start,
        end_time=end,
        party_size=party_size,
        brand_id=brand_id,
        now=now,
    )
    if not vehicles:
        booked = await _has_booked_capacity(
            session,
            block_date=block_date,
            start=start,
            end=end,
            party_size=party_size,
            brand_id=brand_id,
            now=now,
        )
        metrics.record_availability_check("booked" if booked else "no_capacity")
        if booked:
            return AvailabilityCheckResult.rejected([ALL_BOOKED_REASON])
        return AvailabilityCheckResult.rejected(
            [f"No vehicles available with capacity for {party_size} guests"]
        )

    chosen = vehicles[0]
    metrics.record_availability_check("available")
    return AvailabilityCheckResult(
        available=True,
        vehicle_id=chosen.id,
        vehicle_name=chosen.name,
        vehicle_capacity=chosen.capacity,
        available_vehicles=[
            VehicleOption(id=vehicle.id, name=vehicle.name, capacity=vehicle.capacity)
            for vehicle in vehicles
        ],
    )


async def _insert_block(
    session: AsyncSession,
    block: VehicleAvailabilityBlock,
    *,
    operation: str,
    conflict_detail: str,
) -> VehicleAvailabilityBlock:
    savepoint = await session.begin_nested()
    session.add(block)
    try:
        await session.flush()
    except IntegrityError as exc:
        await savepoint.rollback()
        if is_vehicle_overlap_integrity_error(exc):
            metrics.record_block_conflict(operation)
            logger.info(
                f"{operation}_block_conflict",
                extra={
                    "extra": {
                        "vehicle_id": block.vehicle_id,
                        "block_date": block.block_date.isoformat(),
                        "start_time": clock.format_time(block.start_time),
                        "end_time": clock.format_time(block.end_time),
                    }
                },
            )
            raise BlockConflictError(conflict_detail) from exc
        raise
    await savepoint.commit()
    await session.commit()
    await session.refresh(block)
    return block


async def create_hold_block(
    session: AsyncSession,
    *,
    vehicle_id: int,
    block_date: date,
    start_time: str | time,
    end_time: str | time,
    brand_id: int | None = None,
    created_by: int | None = None,
    notes: str | None = None,
) -> VehicleAvailabilityBlock:
    """Reserve a window while a booking is being completed.

    The insert itself is the arbiter between concurrent callers: the loser of a
    race gets ``BlockConflictError`` and should search again.
    """
    start = clock.parse_time(start_time)
    end = clock.parse_time(end_time)
    _require_window(start, end)
    block = VehicleAvailabilityBlock(
        vehicle_id=vehicle_id,
        block_date=block_date,
        start_time=start,
        end_time=end,
        block_type=BlockType.HOLD.value,
        brand_id=brand_id,
        created_by=created_by,
        notes=notes or DEFAULT_HOLD_NOTES,
    )
    try:
        block = await _insert_block(
            session, block, operation="hold", conflict_detail=HOLD_CONFLICT_DETAIL
        )
    except BlockConflictError:
        metrics.record_hold("conflict")
        raise
    metrics.record_hold("created")
    logger.info(
        "hold_block_created",
        extra={
            "extra": {
                "block_id": block.id,
                "vehicle_id": vehicle_id,
                "block_date": block_date.isoformat(),
                "start_time": clock.format_time(start),
                "end_time": clock.format_time(end),
            }
        },
    )
    return block


async def _get_block(session: AsyncSession, block_id: int) -> VehicleAvailabilityBlock | None:
    return await session.get(VehicleAvailabilityBlock, block_id)


async def convert_hold_to_booking(
    session: AsyncSession, hold_block_id: int, booking_id: int
) -> VehicleAvailabilityBlock:
    block = await _get_block(session, hold_block_id)
    if block is None:
        raise BlockNotFoundError(f"Availability block {hold_block_id} not found")
    assert_valid_block_transition(block.block_type, BlockType.BOOKING.value)

    block.block_type = BlockType.BOOKING.value
    block.booking_id = booking_id
    block.notes = None
    await session.commit()
    await session.refresh(block)
    metrics.record_hold("converted")
    logger.info(
        "hold_converted",
        extra={"extra": {"block_id": block.id, "booking_id": booking_id}},
    )
    return block


async def release_hold_block(session: AsyncSession, hold_block_id: int) -> None:
    block = await _get_block(session, hold_block_id)
    if block is None:
        return
    if block.block_type != BlockType.HOLD.value:
        if block.block_type == BlockType.BOOKING.value:
            raise BlockValidationError(BOOKING_BLOCK_DELETE_DETAIL)
        raise BlockValidationError(f"Availability block {hold_block_id} is not a hold")
    await session.delete(block)
    await session.commit()
    metrics.record_hold("released")
    logger.info("hold_released", extra={"extra": {"block_id": hold_block_id}})


async def create_maintenance_block(
    session: AsyncSession,
    *,
    vehicle_id: int,
    block_date: date,
    start_time: str | time,
    end_time: str | time,
    reason: str,
    created_by: int | None = None,
    block_type: BlockType = BlockType.MAINTENANCE,
) -> VehicleAvailabilityBlock:
    block_type = BlockType(block_type)
    if block_type not in (BlockType.MAINTENANCE, BlockType.BLACKOUT):
        raise BlockValidationError(f"Unsupported block type for maintenance: {block_type.value}")
    start = clock.parse_time(start_time)
    end = clock.parse_time(end_time)
    _require_window(start, end)
    block = VehicleAvailabilityBlock(
        vehicle_id=vehicle_id,
        block_date=block_date,
        start_time=start,
        end_time=end,
        block_type=block_type.value,
        created_by=created_by,
        notes=reason,
    )
    block = await _insert_block(
        session, block, operation="maintenance", conflict_detail=MAINTENANCE_CONFLICT_DETAIL
    )
    logger.info(
        "maintenance_block_created",
        extra={
            "extra": {
                "block_id": block.id,
                "vehicle_id": vehicle_id,
                "block_type": block_type.value,
                "block_date": block_date.isoformat(),
            }
        },
    )
    return block


async def create_buffer_blocks(
    session: AsyncSession,
    *,
    vehicle_id: int,
    block_date: date,
    booking_start: str | time,
    booking_end: str | time,
    booking_id: int,
    buffer_minutes: int | None = None,
) -> list[VehicleAvailabilityBlock]:
    """Best-effort turnaround padding around a booking.

    A buffer that would leave operating hours is skipped, and a buffer that
    collides with another block is dropped without failing the booking.
    """
    minutes = settings.buffer_minutes if buffer_minutes is None else buffer_minutes
    if minutes <= 0:
        return []
    start_minutes = clock.time_to_minutes(clock.parse_time(booking_start))
    end_minutes = clock.time_to_minutes(clock.parse_time(booking_end))
    day_start = clock.time_to_minutes(settings.operating_day_start)
    day_end = clock.time_to_minutes(settings.operating_day_end)

    windows: list[tuple[int, int, str]] = []
    if start_minutes - minutes >= day_start:
        windows.append((start_minutes - minutes, start_minutes, PRE_BUFFER_NOTES))
    if end_minutes + minutes <= day_end:
        windows.append((end_minutes, end_minutes + minutes, POST_BUFFER_NOTES))

    created: list[VehicleAvailabilityBlock] = []
    for window_start, window_end, notes in windows:
        block = VehicleAvailabilityBlock(
            vehicle_id=vehicle_id,
            block_date=block_date,
            start_time=clock.minutes_to_time(window_start),
            end_time=clock.minutes_to_time(window_end),
            block_type=BlockType.BUFFER.value,
            booking_id=booking_id,
            notes=notes,
        )
        savepoint = await session.begin_nested()
        session.add(block)
        try:
            await session.flush()
        except IntegrityError as exc:
            await savepoint.rollback()
            logger.debug(
                "buffer_block_skipped",
                extra={
                    "extra": {
                        "vehicle_id": vehicle_id,
                        "booking_id": booking_id,
                        "notes": notes,
                        "overlap": is_vehicle_overlap_integrity_error(exc),
                    }
                },
            )
            continue
        await savepoint.commit()
        created.append(block)
    await session.commit()
    for block in created:
        await session.refresh(block)
    return created


async def get_vehicle_blocks(
    session: AsyncSession, vehicle_id: int, block_date: date
) -> list[VehicleAvailabilityBlock]:
    stmt = (
        select(VehicleAvailabilityBlock)
        .where(
            VehicleAvailabilityBlock.vehicle_id == vehicle_id,
            VehicleAvailabilityBlock.block_date == block_date,
        )
        .order_by(VehicleAvailabilityBlock.start_time)
    )
    return list((await session.execute(stmt)).scalars().all())


async def get_day_blocks(
    session: AsyncSession, block_date: date, vehicle_id: int | None = None
) -> list[CalendarBlock]:
    stmt = (
        select(VehicleAvailabilityBlock, Vehicle.make, Vehicle.model, Booking.booking_number)
        .join(Vehicle, Vehicle.id == VehicleAvailabilityBlock.vehicle_id)
        .outerjoin(Booking, Booking.id == VehicleAvailabilityBlock.booking_id)
        .where(VehicleAvailabilityBlock.block_date == block_date)
        .order_by(VehicleAvailabilityBlock.vehicle_id, VehicleAvailabilityBlock.start_time)
    )
    if vehicle_id is not None:
        stmt = stmt.where(VehicleAvailabilityBlock.vehicle_id == vehicle_id)
    rows = (await session.execute(stmt)).all()
    return [
        CalendarBlock(block=block, vehicle_name=f"{make} {model}", booking_number=booking_number)
        for block, make, model, booking_number in rows
    ]


async def get_blocks_in_range(
    session: AsyncSession,
    start_date: date,
    end_date: date,
    vehicle_id: int | None = None,
) -> list[CalendarBlock]:
    if end_date < start_date:
        raise BlockValidationError("end_date must not be before start_date")
    stmt = (
        select(VehicleAvailabilityBlock, Vehicle.make, Vehicle.model)
        .join(Vehicle, Vehicle.id == VehicleAvailabilityBlock.vehicle_id)
        .where(
            VehicleAvailabilityBlock.block_date >= start_date,
            VehicleAvailabilityBlock.block_date <= end_date,
        )
        .order_by(
            VehicleAvailabilityBlock.block_date,
            VehicleAvailabilityBlock.vehicle_id,
            VehicleAvailabilityBlock.start_time,
        )
    )
    if vehicle_id is not None:
        stmt = stmt.where(VehicleAvailabilityBlock.vehicle_id == vehicle_id)
    rows = (await session.execute(stmt)).all()
    return [CalendarBlock(block=block, vehicle_name=f"{make} {model}") for block, make, model in rows]


async def get_available_slots(
    session: AsyncSession,
    *,
    block_date: date,
    duration_hours: float,
    party_size: int,
    brand_id: int | None = None,
    today: date | None = None,
    now: datetime | None = None,
) -> list[TimeSlot]:
    duration_minutes = clock.hours_to_minutes(duration_hours)
    if duration_minutes <= 0:
        raise BlockValidationError("duration_hours must be positive")
    day_start = clock.time_to_minutes(settings.operating_day_start)
    day_end = clock.time_to_minutes(settings.operating_day_end)

    slots: list[TimeSlot] = []
    slot_start = day_start
    while slot_start + duration_minutes <= day_end:
        start = clock.minutes_to_time(slot_start)
        result = await check_availability(
            session,
            block_date=block_date,
            start_time=start,
            duration_hours=duration_hours,
            party_size=party_size,
            brand_id=brand_id,
            today=today,
            now=now,
        )
        slots.append(
            TimeSlot(
                start=start,
                end=clock.minutes_to_time(slot_start + duration_minutes),
                available=result.available,
                vehicle_id=result.vehicle_id,
                vehicle_name=result.vehicle_name,
            )
        )
        slot_start += settings.slot_step_minutes
    return slots


async def delete_block(session: AsyncSession, block_id: int) -> None:
    block = await _get_block(session, block_id)
    if block is None:
        raise BlockNotFoundError(f"Availability block {block_id} not found")
    if block.block_type == BlockType.BOOKING.value:
        raise BlockValidationError(BOOKING_BLOCK_DELETE_DETAIL)
    await session.delete(block)
    await session.commit()
    logger.info(
        "availability_block_deleted",
        extra={"extra": {"block_id": block_id, "block_type": block.block_type}},
    )


async def delete_booking_blocks(session: AsyncSession, booking_id: int) -> int:
    deletion = (
        delete(VehicleAvailabilityBlock)
        .where(VehicleAvailabilityBlock.booking_id == booking_id)
        .returning(VehicleAvailabilityBlock.id)
    )
    result = await session.execute(deletion)
    deleted = len(result.scalars().all())
    await session.commit()
    logger.info(
        "booking_blocks_deleted",
        extra={"extra": {"booking_id": booking_id, "deleted": deleted}},
    )
    return deleted
