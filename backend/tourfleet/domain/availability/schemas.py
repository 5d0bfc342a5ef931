from datetime import date, datetime, time

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from tourfleet.domain.availability.db_models import BlockType
from tourfleet.domain.availability.service import CalendarBlock


class AvailabilityBlockResponse(BaseModel):
    id: int
    vehicle_id: int
    block_date: date
    start_time: time
    end_time: time
    block_type: BlockType
    booking_id: int | None = None
    brand_id: int | None = None
    created_by: int | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CalendarBlockResponse(AvailabilityBlockResponse):
    vehicle_name: str
    booking_number: str | None = None

    @classmethod
    def from_calendar_block(cls, item: CalendarBlock) -> "CalendarBlockResponse":
        base = AvailabilityBlockResponse.model_validate(item.block)
        return cls(
            **base.model_dump(),
            vehicle_name=item.vehicle_name,
            booking_number=item.booking_number,
        )


class VehicleOptionResponse(BaseModel):
    id: int
    name: str
    capacity: int

    model_config = ConfigDict(from_attributes=True)


class AvailabilityCheckResponse(BaseModel):
    available: bool
    vehicle_id: int | None = None
    vehicle_name: str | None = None
    vehicle_capacity: int | None = None
    conflicts: list[str] = Field(default_factory=list)
    available_vehicles: list[VehicleOptionResponse] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class TimeSlotResponse(BaseModel):
    start: time
    end: time
    available: bool
    vehicle_id: int | None = None
    vehicle_name: str | None = None

    model_config = ConfigDict(from_attributes=True)


class SlotsResponse(BaseModel):
    date: date
    duration_hours: float
    slots: list[TimeSlotResponse]


class VehicleAvailabilityResponse(BaseModel):
    vehicle_id: int
    date: date
    start_time: time
    end_time: time
    available: bool
    conflicts: list[AvailabilityBlockResponse]


class _WindowRequest(BaseModel):
    vehicle_id: int
    block_date: date
    start_time: time
    end_time: time

    @model_validator(mode="after")
    def validate_window(self) -> "_WindowRequest":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class HoldCreateRequest(_WindowRequest):
    brand_id: int | None = None
    created_by: int | None = None
    notes: str | None = Field(None, max_length=1000)


class HoldConvertRequest(BaseModel):
    booking_id: int


class MaintenanceCreateRequest(_WindowRequest):
    reason: str = Field(min_length=1, max_length=1000)
    created_by: int | None = None
    block_type: BlockType = BlockType.MAINTENANCE

    @field_validator("block_type")
    @classmethod
    def validate_block_type(cls, value: BlockType) -> BlockType:
        if value not in (BlockType.MAINTENANCE, BlockType.BLACKOUT):
            raise ValueError("block_type must be maintenance or blackout")
        return value


class BufferCreateRequest(BaseModel):
    vehicle_id: int
    block_date: date
    booking_start: time
    booking_end: time
    booking_id: int
    buffer_minutes: int | None = Field(None, ge=0, le=240)


class CleanupResponse(BaseModel):
    deleted: int


class BookingBlocksDeletedResponse(BaseModel):
    booking_id: int
    deleted: int
