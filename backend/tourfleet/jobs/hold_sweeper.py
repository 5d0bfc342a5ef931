import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from tourfleet.domain.availability import service as availability_service

logger = logging.getLogger(__name__)


async def run_expired_hold_sweep(session: AsyncSession, *, now: datetime | None = None) -> dict[str, int]:
    """Remove unconverted holds that outlived their TTL."""

    deleted = await availability_service.cleanup_expired_holds(session, now=now)
    if not deleted:
        logger.debug("expired_hold_sweep_idle")
    return {"deleted": deleted}
