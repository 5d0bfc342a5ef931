from datetime import date, time

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from tourfleet.domain.availability import schemas as availability_schemas
from tourfleet.domain.availability import service as availability_service
from tourfleet.domain.errors import BlockValidationError
from tourfleet.infra.db import get_db_session

router = APIRouter(prefix="/v1/availability", tags=["availability"])


@router.get("/check", response_model=availability_schemas.AvailabilityCheckResponse)
async def check_availability(
    block_date: date = Query(..., alias="date"),
    start_time: time = Query(...),
    duration_hours: float = Query(..., gt=0, le=14),
    party_size: int = Query(..., ge=1),
    brand_id: int | None = Query(None),
    session: AsyncSession = Depends(get_db_session),
) -> availability_schemas.AvailabilityCheckResponse:
    result = await availability_service.check_availability(
        session,
        block_date=block_date,
        start_time=start_time,
        duration_hours=duration_hours,
        party_size=party_size,
        brand_id=brand_id,
    )
    return availability_schemas.AvailabilityCheckResponse.model_validate(result)


@router.get("/slots", response_model=availability_schemas.SlotsResponse)
async def list_slots(
    block_date: date = Query(..., alias="date"),
    duration_hours: float = Query(..., gt=0, le=14),
    party_size: int = Query(..., ge=1),
    brand_id: int | None = Query(None),
    session: AsyncSession = Depends(get_db_session),
) -> availability_schemas.SlotsResponse:
    slots = await availability_service.get_available_slots(
        session,
        block_date=block_date,
        duration_hours=duration_hours,
        party_size=party_size,
        brand_id=brand_id,
    )
    return availability_schemas.SlotsResponse(
        date=block_date,
        duration_hours=duration_hours,
        slots=[availability_schemas.TimeSlotResponse.model_validate(slot) for slot in slots],
    )


@router.get(
    "/vehicles/{vehicle_id}",
    response_model=availability_schemas.VehicleAvailabilityResponse,
)
async def get_vehicle_availability(
    vehicle_id: int,
    block_date: date = Query(..., alias="date"),
    start_time: time = Query(...),
    end_time: time = Query(...),
    session: AsyncSession = Depends(get_db_session),
) -> availability_schemas.VehicleAvailabilityResponse:
    if end_time <= start_time:
        raise BlockValidationError("end_time must be after start_time")
    result = await availability_service.check_vehicle_availability(
        session, vehicle_id, block_date, start_time, end_time
    )
    return availability_schemas.VehicleAvailabilityResponse(
        vehicle_id=vehicle_id,
        date=block_date,
        start_time=start_time,
        end_time=end_time,
        available=result.available,
        conflicts=[
            availability_schemas.AvailabilityBlockResponse.model_validate(block)
            for block in result.conflicts
        ],
    )


@router.post(
    "/holds",
    response_model=availability_schemas.AvailabilityBlockResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_hold(
    payload: availability_schemas.HoldCreateRequest,
    session: AsyncSession = Depends(get_db_session),
) -> availability_schemas.AvailabilityBlockResponse:
    block = await availability_service.create_hold_block(
        session,
        vehicle_id=payload.vehicle_id,
        block_date=payload.block_date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        brand_id=payload.brand_id,
        created_by=payload.created_by,
        notes=payload.notes,
    )
    return availability_schemas.AvailabilityBlockResponse.model_validate(block)


@router.post("/holds/cleanup", response_model=availability_schemas.CleanupResponse)
async def cleanup_holds(
    session: AsyncSession = Depends(get_db_session),
) -> availability_schemas.CleanupResponse:
    deleted = await availability_service.cleanup_expired_holds(session)
    return availability_schemas.CleanupResponse(deleted=deleted)


@router.post(
    "/holds/{block_id}/convert",
    response_model=availability_schemas.AvailabilityBlockResponse,
)
async def convert_hold(
    block_id: int,
    payload: availability_schemas.HoldConvertRequest,
    session: AsyncSession = Depends(get_db_session),
) -> availability_schemas.AvailabilityBlockResponse:
    block = await availability_service.convert_hold_to_booking(session, block_id, payload.booking_id)
    return availability_schemas.AvailabilityBlockResponse.model_validate(block)


@router.delete("/holds/{block_id}", status_code=status.HTTP_204_NO_CONTENT)
async def release_hold(
    block_id: int,
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    await availability_service.release_hold_block(session, block_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/maintenance",
    response_model=availability_schemas.AvailabilityBlockResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_maintenance(
    payload: availability_schemas.MaintenanceCreateRequest,
    session: AsyncSession = Depends(get_db_session),
) -> availability_schemas.AvailabilityBlockResponse:
    block = await availability_service.create_maintenance_block(
        session,
        vehicle_id=payload.vehicle_id,
        block_date=payload.block_date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        reason=payload.reason,
        created_by=payload.created_by,
        block_type=payload.block_type,
    )
    return availability_schemas.AvailabilityBlockResponse.model_validate(block)


@router.post(
    "/buffers",
    response_model=list[availability_schemas.AvailabilityBlockResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_buffers(
    payload: availability_schemas.BufferCreateRequest,
    session: AsyncSession = Depends(get_db_session),
) -> list[availability_schemas.AvailabilityBlockResponse]:
    blocks = await availability_service.create_buffer_blocks(
        session,
        vehicle_id=payload.vehicle_id,
        block_date=payload.block_date,
        booking_start=payload.booking_start,
        booking_end=payload.booking_end,
        booking_id=payload.booking_id,
        buffer_minutes=payload.buffer_minutes,
    )
    return [availability_schemas.AvailabilityBlockResponse.model_validate(block) for block in blocks]


@router.get("/blocks", response_model=list[availability_schemas.CalendarBlockResponse])
async def list_blocks(
    block_date: date | None = Query(None, alias="date"),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    vehicle_id: int | None = Query(None),
    session: AsyncSession = Depends(get_db_session),
) -> list[availability_schemas.CalendarBlockResponse]:
    if block_date is not None:
        items = await availability_service.get_day_blocks(session, block_date, vehicle_id=vehicle_id)
    elif start_date is not None and end_date is not None:
        items = await availability_service.get_blocks_in_range(
            session, start_date, end_date, vehicle_id=vehicle_id
        )
    else:
        raise BlockValidationError("Provide either date or both start_date and end_date")
    return [availability_schemas.CalendarBlockResponse.from_calendar_block(item) for item in items]


@router.delete("/blocks/{block_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_block(
    block_id: int,
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    await availability_service.delete_block(session, block_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "/bookings/{booking_id}/blocks",
    response_model=availability_schemas.BookingBlocksDeletedResponse,
)
async def delete_booking_blocks(
    booking_id: int,
    session: AsyncSession = Depends(get_db_session),
) -> availability_schemas.BookingBlocksDeletedResponse:
    deleted = await availability_service.delete_booking_blocks(session, booking_id)
    return availability_schemas.BookingBlocksDeletedResponse(booking_id=booking_id, deleted=deleted)
