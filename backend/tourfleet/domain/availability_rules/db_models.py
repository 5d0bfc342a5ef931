from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Boolean, CheckConstraint, Date, DateTime, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from tourfleet.infra.db import Base

RULE_TYPE_BLACKOUT_DATE = "blackout_date"
RULE_TYPES = ("buffer_time", "blackout_date", "capacity_limit", "maintenance_block")


class AvailabilityRule(Base):
    __tablename__ = "availability_rules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    rule_type: Mapped[str] = mapped_column(String(50), nullable=False)
    buffer_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    blackout_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    blackout_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    blackout_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "rule_type IN ('buffer_time', 'blackout_date', 'capacity_limit', 'maintenance_block')",
            name="ck_availability_rules_rule_type",
        ),
        Index("ix_availability_rules_type", "rule_type"),
        Index("ix_availability_rules_active", "is_active"),
    )
