from __future__ import annotations

from datetime import date

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tourfleet.domain.availability_rules.db_models import RULE_TYPE_BLACKOUT_DATE, AvailabilityRule

DEFAULT_BLACKOUT_REASON = "Date unavailable"


async def list_active_blackouts(session: AsyncSession, target_date: date) -> list[AvailabilityRule]:
    """Active blackout rules covering ``target_date``, either by exact date or by range."""
    stmt = (
        select(AvailabilityRule)
        .where(
            AvailabilityRule.rule_type == RULE_TYPE_BLACKOUT_DATE,
            AvailabilityRule.is_active.is_(True),
            or_(
                AvailabilityRule.blackout_date == target_date,
                and_(
                    AvailabilityRule.blackout_start_date.is_not(None),
                    AvailabilityRule.blackout_end_date.is_not(None),
                    AvailabilityRule.blackout_start_date <= target_date,
                    AvailabilityRule.blackout_end_date >= target_date,
                ),
            ),
        )
        .order_by(AvailabilityRule.id)
    )
    return list((await session.execute(stmt)).scalars().all())


async def blackout_reasons(session: AsyncSession, target_date: date) -> list[str]:
    rules = await list_active_blackouts(session, target_date)
    return [rule.reason or DEFAULT_BLACKOUT_REASON for rule in rules]
