"""initial

Revision ID: 0001_initial
Revises: 
Create Date: 2026-01-05 00:00:00
"""
from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "brands",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("slug", sa.String(length=60), nullable=False, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_table(
        "vehicles",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("make", sa.String(length=80), nullable=False),
        sa.Column("model", sa.String(length=80), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("vehicle_type", sa.String(length=40), nullable=False, server_default="sprinter"),
        sa.Column("license_plate", sa.String(length=20)),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("available_to_all_brands", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("capacity > 0", name="ck_vehicles_capacity_positive"),
        sa.CheckConstraint("status IN ('active', 'maintenance', 'retired')", name="ck_vehicles_status"),
    )
    op.create_index("ix_vehicles_status_capacity", "vehicles", ["status", "capacity"])
    op.create_table(
        "vehicle_brands",
        sa.Column(
            "vehicle_id",
            sa.Integer(),
            sa.ForeignKey("vehicles.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "brand_id",
            sa.Integer(),
            sa.ForeignKey("brands.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )
    op.create_index("ix_vehicle_brands_brand_id", "vehicle_brands", ["brand_id"])
    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("booking_number", sa.String(length=32), nullable=False, unique=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_table(
        "availability_rules",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("rule_type", sa.String(length=50), nullable=False),
        sa.Column("buffer_minutes", sa.Integer()),
        sa.Column("blackout_date", sa.Date()),
        sa.Column("blackout_start_date", sa.Date()),
        sa.Column("blackout_end_date", sa.Date()),
        sa.Column("reason", sa.Text()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_by", sa.Integer()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "rule_type IN ('buffer_time', 'blackout_date', 'capacity_limit', 'maintenance_block')",
            name="ck_availability_rules_rule_type",
        ),
    )
    op.create_index("ix_availability_rules_type", "availability_rules", ["rule_type"])
    op.create_index("ix_availability_rules_active", "availability_rules", ["is_active"])
    op.create_table(
        "vehicle_availability_blocks",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "vehicle_id",
            sa.Integer(),
            sa.ForeignKey("vehicles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("block_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("block_type", sa.String(length=20), nullable=False, server_default="booking"),
        sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id", ondelete="CASCADE")),
        sa.Column("brand_id", sa.Integer(), sa.ForeignKey("brands.id")),
        sa.Column("created_by", sa.Integer()),
        sa.Column("notes", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("end_time > start_time", name="valid_time_range"),
        sa.CheckConstraint(
            "block_type IN ('booking', 'maintenance', 'hold', 'buffer', 'blackout')",
            name="valid_block_type",
        ),
    )
    op.create_index(
        "idx_availability_vehicle_date",
        "vehicle_availability_blocks",
        ["vehicle_id", "block_date"],
    )
    op.create_index("idx_availability_booking", "vehicle_availability_blocks", ["booking_id"])
    op.create_index("idx_availability_brand", "vehicle_availability_blocks", ["brand_id"])


def downgrade() -> None:
    op.drop_index("idx_availability_brand", table_name="vehicle_availability_blocks")
    op.drop_index("idx_availability_booking", table_name="vehicle_availability_blocks")
    op.drop_index("idx_availability_vehicle_date", table_name="vehicle_availability_blocks")
    op.drop_table("vehicle_availability_blocks")
    op.drop_index("ix_availability_rules_active", table_name="availability_rules")
    op.drop_index("ix_availability_rules_type", table_name="availability_rules")
    op.drop_table("availability_rules")
    op.drop_table("bookings")
    op.drop_index("ix_vehicle_brands_brand_id", table_name="vehicle_brands")
    op.drop_table("vehicle_brands")
    op.drop_index("ix_vehicles_status_capacity", table_name="vehicles")
    op.drop_table("vehicles")
    op.drop_table("brands")
