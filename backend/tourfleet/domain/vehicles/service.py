from __future__ import annotations

from sqlalchemy import ColumnElement, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tourfleet.domain.vehicles.db_models import VEHICLE_STATUS_ACTIVE, Vehicle, VehicleBrand


def candidate_vehicle_filters(party_size: int, brand_id: int | None = None) -> list[ColumnElement[bool]]:
    filters: list[ColumnElement[bool]] = [
        Vehicle.capacity >= party_size,
        Vehicle.status == VEHICLE_STATUS_ACTIVE,
    ]
    if brand_id is not None:
        brand_vehicle_ids = select(VehicleBrand.vehicle_id).where(VehicleBrand.brand_id == brand_id)
        filters.append(
            or_(Vehicle.available_to_all_brands.is_(True), Vehicle.id.in_(brand_vehicle_ids))
        )
    return filters


async def list_candidate_vehicles(
    session: AsyncSession,
    *,
    party_size: int,
    brand_id: int | None = None,
) -> list[Vehicle]:
    """Active vehicles able to seat ``party_size``, smallest capacity first."""
    stmt = (
        select(Vehicle)
        .where(*candidate_vehicle_filters(party_size, brand_id))
        .order_by(Vehicle.capacity.asc(), Vehicle.id.asc())
    )
    return list((await session.execute(stmt)).scalars().all())
