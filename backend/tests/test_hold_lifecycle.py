import asyncio
import random
from datetime import date, time

import pytest
from sqlalchemy import select

from tests.factories import add_booking, add_vehicle, hhmm
from tourfleet.domain.availability import service as availability_service
from tourfleet.domain.availability.db_models import BlockType, VehicleAvailabilityBlock
from tourfleet.domain.bookings.db_models import Booking
from tourfleet.domain.errors import BlockConflictError, BlockNotFoundError, BlockValidationError

TOUR_DATE = date(2026, 6, 15)
TODAY = date(2026, 6, 1)


@pytest.mark.anyio
async def test_hold_is_created_with_default_notes(async_session_maker):
    async with async_session_maker() as session:
        vehicle = await add_vehicle(session)
        hold = await availability_service.create_hold_block(
            session,
            vehicle_id=vehicle.id,
            block_date=TOUR_DATE,
            start_time="10:00",
            end_time="14:00",
            created_by=7,
        )

    assert hold.id is not None
    assert hold.type is BlockType.HOLD
    assert hold.booking_id is None
    assert hold.created_by == 7
    assert hold.notes == "Temporary hold for booking in progress"
    assert (hold.start_time, hold.end_time) == (hhmm("10:00"), hhmm("14:00"))


@pytest.mark.anyio
async def test_overlapping_hold_raises_conflict(async_session_maker):
    async with async_session_maker() as session:
        vehicle = await add_vehicle(session)
        vehicle_id = vehicle.id
        await availability_service.create_hold_block(
            session, vehicle_id=vehicle.id, block_date=TOUR_DATE, start_time="10:00", end_time="14:00"
        )
        with pytest.raises(BlockConflictError) as exc_info:
            await availability_service.create_hold_block(
                session, vehicle_id=vehicle.id, block_date=TOUR_DATE, start_time="13:00", end_time="15:00"
            )
        # The session stays usable after the rejected insert.
        blocks = await availability_service.get_vehicle_blocks(session, vehicle_id, TOUR_DATE)

    assert exc_info.value.detail == (
        "Time slot is no longer available. Another booking was just made for this time."
    )
    assert len(blocks) == 1


@pytest.mark.anyio
async def test_inverted_window_is_rejected_before_insert(async_session_maker):
    async with async_session_maker() as session:
        vehicle = await add_vehicle(session)
        with pytest.raises(BlockValidationError):
            await availability_service.create_hold_block(
                session, vehicle_id=vehicle.id, block_date=TOUR_DATE, start_time="14:00", end_time="10:00"
            )


@pytest.mark.anyio
async def test_convert_hold_to_booking(async_session_maker):
    async with async_session_maker() as session:
        vehicle = await add_vehicle(session)
        booking = await add_booking(session)
        hold = await availability_service.create_hold_block(
            session, vehicle_id=vehicle.id, block_date=TOUR_DATE, start_time="10:00", end_time="14:00"
        )
        converted = await availability_service.convert_hold_to_booking(session, hold.id, booking.id)

    assert converted.id == hold.id
    assert converted.block_type == BlockType.BOOKING.value
    assert converted.booking_id == booking.id
    assert converted.notes is None


@pytest.mark.anyio
async def test_convert_rejects_missing_and_non_hold_blocks(async_session_maker):
    async with async_session_maker() as session:
        vehicle = await add_vehicle(session)
        booking = await add_booking(session)
        maintenance = await availability_service.create_maintenance_block(
            session,
            vehicle_id=vehicle.id,
            block_date=TOUR_DATE,
            start_time="08:00",
            end_time="09:00",
            reason="Oil change",
        )
        with pytest.raises(BlockNotFoundError):
            await availability_service.convert_hold_to_booking(session, 999_999, booking.id)
        with pytest.raises(BlockValidationError):
            await availability_service.convert_hold_to_booking(session, maintenance.id, booking.id)


@pytest.mark.anyio
async def test_release_hold_is_idempotent(async_session_maker):
    async with async_session_maker() as session:
        vehicle = await add_vehicle(session)
        hold = await availability_service.create_hold_block(
            session, vehicle_id=vehicle.id, block_date=TOUR_DATE, start_time="10:00", end_time="14:00"
        )
        await availability_service.release_hold_block(session, hold.id)
        await availability_service.release_hold_block(session, hold.id)
        check = await availability_service.check_vehicle_availability(
            session, vehicle.id, TOUR_DATE, "10:00", "14:00"
        )

    assert check.available is True


@pytest.mark.anyio
async def test_release_refuses_booking_and_maintenance_blocks(async_session_maker):
    async with async_session_maker() as session:
        vehicle = await add_vehicle(session)
        vehicle_id = vehicle.id
        booking = await add_booking(session)
        hold = await availability_service.create_hold_block(
            session, vehicle_id=vehicle_id, block_date=TOUR_DATE, start_time="10:00", end_time="14:00"
        )
        await availability_service.convert_hold_to_booking(session, hold.id, booking.id)
        maintenance = await availability_service.create_maintenance_block(
            session,
            vehicle_id=vehicle_id,
            block_date=TOUR_DATE,
            start_time="15:00",
            end_time="16:00",
            reason="Oil change",
        )

        with pytest.raises(BlockValidationError) as booking_exc:
            await availability_service.release_hold_block(session, hold.id)
        with pytest.raises(BlockValidationError) as maintenance_exc:
            await availability_service.release_hold_block(session, maintenance.id)
        check = await availability_service.check_vehicle_availability(
            session, vehicle_id, TOUR_DATE, "10:00", "14:00"
        )
        blocks = await availability_service.get_vehicle_blocks(session, vehicle_id, TOUR_DATE)

    assert booking_exc.value.detail == "Cannot delete booking blocks directly. Cancel the booking instead."
    assert "is not a hold" in maintenance_exc.value.detail
    assert check.available is False
    assert [block.block_type for block in blocks] == ["booking", "maintenance"]


@pytest.mark.anyio
async def test_rejected_hold_keeps_pending_caller_work(async_session_maker):
    async with async_session_maker() as session:
        vehicle = await add_vehicle(session)
        vehicle_id = vehicle.id
        await availability_service.create_hold_block(
            session, vehicle_id=vehicle_id, block_date=TOUR_DATE, start_time="10:00", end_time="14:00"
        )
        session.add(Booking(booking_number="BK-2002", status="pending"))
        with pytest.raises(BlockConflictError):
            await availability_service.create_hold_block(
                session, vehicle_id=vehicle_id, block_date=TOUR_DATE, start_time="12:00", end_time="13:00"
            )
        await session.commit()

    async with async_session_maker() as session:
        numbers = (await session.execute(select(Booking.booking_number))).scalars().all()

    assert numbers == ["BK-2002"]


@pytest.mark.anyio
async def test_maintenance_conflict_message(async_session_maker):
    async with async_session_maker() as session:
        vehicle = await add_vehicle(session)
        await availability_service.create_hold_block(
            session, vehicle_id=vehicle.id, block_date=TOUR_DATE, start_time="10:00", end_time="14:00"
        )
        with pytest.raises(BlockConflictError) as exc_info:
            await availability_service.create_maintenance_block(
                session,
                vehicle_id=vehicle.id,
                block_date=TOUR_DATE,
                start_time="12:00",
                end_time="18:00",
                reason="Transmission",
            )

    assert exc_info.value.detail == "Cannot create maintenance block - time slot has existing bookings"


@pytest.mark.anyio
async def test_vehicle_blackout_block_uses_maintenance_path(async_session_maker):
    async with async_session_maker() as session:
        vehicle = await add_vehicle(session)
        blackout = await availability_service.create_maintenance_block(
            session,
            vehicle_id=vehicle.id,
            block_date=TOUR_DATE,
            start_time="08:00",
            end_time="22:00",
            reason="Driver unavailable",
            block_type=BlockType.BLACKOUT,
        )
        with pytest.raises(BlockValidationError):
            await availability_service.create_maintenance_block(
                session,
                vehicle_id=vehicle.id,
                block_date=TOUR_DATE,
                start_time="08:00",
                end_time="09:00",
                reason="Not a maintenance type",
                block_type=BlockType.HOLD,
            )

    assert blackout.block_type == "blackout"
    assert blackout.notes == "Driver unavailable"


@pytest.mark.anyio
async def test_delete_block_rules(async_session_maker):
    async with async_session_maker() as session:
        vehicle = await add_vehicle(session)
        booking = await add_booking(session)
        maintenance = await availability_service.create_maintenance_block(
            session,
            vehicle_id=vehicle.id,
            block_date=TOUR_DATE,
            start_time="08:00",
            end_time="09:00",
            reason="Wash",
        )
        hold = await availability_service.create_hold_block(
            session, vehicle_id=vehicle.id, block_date=TOUR_DATE, start_time="10:00", end_time="14:00"
        )
        await availability_service.convert_hold_to_booking(session, hold.id, booking.id)

        with pytest.raises(BlockValidationError) as exc_info:
            await availability_service.delete_block(session, hold.id)
        with pytest.raises(BlockNotFoundError):
            await availability_service.delete_block(session, 424242)
        await availability_service.delete_block(session, maintenance.id)
        remaining = await availability_service.get_vehicle_blocks(session, vehicle.id, TOUR_DATE)

    assert exc_info.value.detail == "Cannot delete booking blocks directly. Cancel the booking instead."
    assert [block.id for block in remaining] == [hold.id]


@pytest.mark.anyio
async def test_buffers_are_created_around_booking(async_session_maker):
    async with async_session_maker() as session:
        vehicle = await add_vehicle(session)
        booking = await add_booking(session)
        buffers = await availability_service.create_buffer_blocks(
            session,
            vehicle_id=vehicle.id,
            block_date=TOUR_DATE,
            booking_start="10:00",
            booking_end="14:00",
            booking_id=booking.id,
        )

    assert [(block.start_time, block.end_time) for block in buffers] == [
        (hhmm("09:00"), hhmm("10:00")),
        (hhmm("14:00"), hhmm("15:00")),
    ]
    assert [block.notes for block in buffers] == ["Pre-booking buffer", "Post-booking buffer"]
    assert all(block.block_type == "buffer" and block.booking_id == booking.id for block in buffers)


@pytest.mark.anyio
async def test_buffers_outside_operating_hours_are_skipped(async_session_maker):
    async with async_session_maker() as session:
        vehicle = await add_vehicle(session)
        booking = await add_booking(session)
        early = await availability_service.create_buffer_blocks(
            session,
            vehicle_id=vehicle.id,
            block_date=TOUR_DATE,
            booking_start="08:00",
            booking_end="12:00",
            booking_id=booking.id,
        )
        late = await availability_service.create_buffer_blocks(
            session,
            vehicle_id=vehicle.id,
            block_date=TOUR_DATE,
            booking_start="18:30",
            booking_end="21:30",
            booking_id=booking.id,
            buffer_minutes=30,
        )

    assert [block.notes for block in early] == ["Post-booking buffer"]
    assert [(block.start_time, block.end_time) for block in late] == [
        (hhmm("18:00"), hhmm("18:30")),
        (hhmm("21:30"), hhmm("22:00")),
    ]


@pytest.mark.anyio
async def test_colliding_buffer_is_dropped_without_failing(async_session_maker):
    async with async_session_maker() as session:
        vehicle = await add_vehicle(session)
        booking = await add_booking(session)
        await availability_service.create_maintenance_block(
            session,
            vehicle_id=vehicle.id,
            block_date=TOUR_DATE,
            start_time="09:00",
            end_time="10:00",
            reason="Cleaning",
        )
        buffers = await availability_service.create_buffer_blocks(
            session,
            vehicle_id=vehicle.id,
            block_date=TOUR_DATE,
            booking_start="10:00",
            booking_end="14:00",
            booking_id=booking.id,
        )

    assert [block.notes for block in buffers] == ["Post-booking buffer"]


@pytest.mark.anyio
async def test_colliding_buffer_keeps_the_callers_booking(async_session_maker):
    async with async_session_maker() as session:
        vehicle = await add_vehicle(session)
        vehicle_id = vehicle.id
        await availability_service.create_maintenance_block(
            session,
            vehicle_id=vehicle_id,
            block_date=TOUR_DATE,
            start_time="09:00",
            end_time="10:00",
            reason="Cleaning",
        )
        booking = Booking(booking_number="BK-3003", status="confirmed")
        session.add(booking)
        await session.flush()
        booking_id = booking.id
        buffers = await availability_service.create_buffer_blocks(
            session,
            vehicle_id=vehicle_id,
            block_date=TOUR_DATE,
            booking_start="10:00",
            booking_end="14:00",
            booking_id=booking_id,
        )

    async with async_session_maker() as session:
        stored = await session.get(Booking, booking_id)
        blocks = await availability_service.get_vehicle_blocks(session, vehicle_id, TOUR_DATE)

    assert [block.notes for block in buffers] == ["Post-booking buffer"]
    assert stored is not None and stored.booking_number == "BK-3003"
    assert [block.block_type for block in blocks] == ["maintenance", "buffer"]


@pytest.mark.anyio
async def test_zero_buffer_creates_nothing(async_session_maker):
    async with async_session_maker() as session:
        vehicle = await add_vehicle(session)
        booking = await add_booking(session)
        buffers = await availability_service.create_buffer_blocks(
            session,
            vehicle_id=vehicle.id,
            block_date=TOUR_DATE,
            booking_start="10:00",
            booking_end="14:00",
            booking_id=booking.id,
            buffer_minutes=0,
        )

    assert buffers == []


@pytest.mark.anyio
async def test_hold_book_cancel_scenario(async_session_maker):
    async with async_session_maker() as session:
        vehicle = await add_vehicle(session, capacity=14)
        booking = await add_booking(session, "BK-2001")

        check = await availability_service.check_availability(
            session,
            block_date=TOUR_DATE,
            start_time="10:00",
            duration_hours=4,
            party_size=6,
            today=TODAY,
        )
        assert check.available is True
        assert check.vehicle_id == vehicle.id

        hold = await availability_service.create_hold_block(
            session, vehicle_id=check.vehicle_id, block_date=TOUR_DATE, start_time="10:00", end_time="14:00"
        )
        await availability_service.convert_hold_to_booking(session, hold.id, booking.id)
        buffers = await availability_service.create_buffer_blocks(
            session,
            vehicle_id=vehicle.id,
            block_date=TOUR_DATE,
            booking_start="10:00",
            booking_end="14:00",
            booking_id=booking.id,
        )
        assert len(buffers) == 2

        overlapping = await availability_service.check_availability(
            session,
            block_date=TOUR_DATE,
            start_time="11:00",
            duration_hours=2,
            party_size=6,
            today=TODAY,
        )
        assert overlapping.conflicts == ["All suitable vehicles are booked for this time slot"]

        day = await availability_service.get_day_blocks(session, TOUR_DATE)
        assert [item.block.block_type for item in day] == ["buffer", "booking", "buffer"]
        assert {item.booking_number for item in day} == {"BK-2001"}
        assert {item.vehicle_name for item in day} == {"Mercedes Sprinter"}

        deleted = await availability_service.delete_booking_blocks(session, booking.id)
        assert deleted == 3

        reopened = await availability_service.check_availability(
            session,
            block_date=TOUR_DATE,
            start_time="11:00",
            duration_hours=2,
            party_size=6,
            today=TODAY,
        )
        assert reopened.available is True


@pytest.mark.anyio
async def test_blocks_in_range_are_ordered_and_filterable(async_session_maker):
    async with async_session_maker() as session:
        van = await add_vehicle(session, make="Ford", model="Transit", capacity=8)
        sprinter = await add_vehicle(session, capacity=14)
        next_day = date(2026, 6, 16)
        for vehicle_id, day, start, end in [
            (sprinter.id, next_day, "08:00", "09:00"),
            (van.id, TOUR_DATE, "12:00", "13:00"),
            (van.id, TOUR_DATE, "08:00", "09:00"),
            (sprinter.id, TOUR_DATE, "08:00", "09:00"),
        ]:
            await availability_service.create_maintenance_block(
                session,
                vehicle_id=vehicle_id,
                block_date=day,
                start_time=start,
                end_time=end,
                reason="Check",
            )
        everything = await availability_service.get_blocks_in_range(session, TOUR_DATE, next_day)
        van_only = await availability_service.get_blocks_in_range(
            session, TOUR_DATE, next_day, vehicle_id=van.id
        )
        with pytest.raises(BlockValidationError):
            await availability_service.get_blocks_in_range(session, next_day, TOUR_DATE)

    assert [
        (item.block.block_date, item.block.vehicle_id, item.block.start_time) for item in everything
    ] == [
        (TOUR_DATE, van.id, hhmm("08:00")),
        (TOUR_DATE, van.id, hhmm("12:00")),
        (TOUR_DATE, sprinter.id, hhmm("08:00")),
        (next_day, sprinter.id, hhmm("08:00")),
    ]
    assert {item.vehicle_name for item in van_only} == {"Ford Transit"}
    assert len(van_only) == 2


@pytest.mark.anyio
async def test_random_block_sequences_never_overlap(async_session_maker):
    rng = random.Random(20260615)
    async with async_session_maker() as session:
        vehicle_ids = [(await add_vehicle(session, capacity=8 + index)).id for index in range(3)]
        accepted = 0
        rejected = 0
        for _ in range(60):
            vehicle_id = rng.choice(vehicle_ids)
            start = rng.randrange(8 * 60, 21 * 60, 15)
            end = min(start + rng.choice([15, 30, 60, 90, 120, 240]), 22 * 60)
            try:
                await availability_service.create_hold_block(
                    session,
                    vehicle_id=vehicle_id,
                    block_date=TOUR_DATE,
                    start_time=time(start // 60, start % 60),
                    end_time=time(end // 60, end % 60),
                )
            except BlockConflictError:
                rejected += 1
            else:
                accepted += 1

        rows = (await session.execute(select(VehicleAvailabilityBlock))).scalars().all()

    assert accepted == len(rows)
    assert rejected > 0
    by_vehicle: dict[int, list[VehicleAvailabilityBlock]] = {}
    for row in rows:
        by_vehicle.setdefault(row.vehicle_id, []).append(row)
    for blocks in by_vehicle.values():
        blocks.sort(key=lambda block: block.start_time)
        for earlier, later in zip(blocks, blocks[1:]):
            assert earlier.end_time <= later.start_time


@pytest.mark.anyio
async def test_concurrent_holds_on_the_same_window(concurrent_session_maker):
    async with concurrent_session_maker() as session:
        vehicle = await add_vehicle(session)
    vehicle_id = vehicle.id

    async def _attempt() -> int | None:
        async with concurrent_session_maker() as session:
            try:
                hold = await availability_service.create_hold_block(
                    session,
                    vehicle_id=vehicle_id,
                    block_date=TOUR_DATE,
                    start_time="10:00",
                    end_time="14:00",
                )
            except BlockConflictError:
                return None
            return hold.id

    outcomes = await asyncio.gather(*[_attempt() for _ in range(4)])

    winners = [outcome for outcome in outcomes if outcome is not None]
    assert len(winners) == 1
    async with concurrent_session_maker() as session:
        blocks = await availability_service.get_vehicle_blocks(session, vehicle_id, TOUR_DATE)
    assert [block.id for block in blocks] == winners
