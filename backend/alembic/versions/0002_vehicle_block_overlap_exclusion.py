"""vehicle block overlap exclusion

Revision ID: 0002_vehicle_block_overlap_exclusion
Revises: 0001_initial
Create Date: 2026-01-12 00:00:00
"""
from alembic import op

revision = "0002_vehicle_block_overlap_exclusion"
down_revision = "0001_initial"
branch_labels = None
depends_on = None

CONSTRAINT_NAME = "no_overlapping_vehicle_blocks"
TABLE_NAME = "vehicle_availability_blocks"


def upgrade() -> None:
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute(
            f"""
            ALTER TABLE {TABLE_NAME}
            ADD CONSTRAINT {CONSTRAINT_NAME}
            EXCLUDE USING gist (
                vehicle_id WITH =,
                block_date WITH =,
                tsrange(
                    (block_date + start_time)::timestamp,
                    (block_date + end_time)::timestamp,
                    '[)'
                ) WITH &&
            )
            """
        )
        return
    if bind.dialect.name == "sqlite":
        op.execute(
            f"""
            CREATE TRIGGER IF NOT EXISTS {CONSTRAINT_NAME}_insert
            BEFORE INSERT ON {TABLE_NAME}
            FOR EACH ROW
            WHEN EXISTS (
                SELECT 1 FROM {TABLE_NAME}
                WHERE vehicle_id = NEW.vehicle_id
                  AND block_date = NEW.block_date
                  AND start_time < NEW.end_time
                  AND end_time > NEW.start_time
            )
            BEGIN
                SELECT RAISE(ABORT, '{CONSTRAINT_NAME}');
            END
            """
        )
        op.execute(
            f"""
            CREATE TRIGGER IF NOT EXISTS {CONSTRAINT_NAME}_update
            BEFORE UPDATE OF vehicle_id, block_date, start_time, end_time ON {TABLE_NAME}
            FOR EACH ROW
            WHEN EXISTS (
                SELECT 1 FROM {TABLE_NAME}
                WHERE id != NEW.id
                  AND vehicle_id = NEW.vehicle_id
                  AND block_date = NEW.block_date
                  AND start_time < NEW.end_time
                  AND end_time > NEW.start_time
            )
            BEGIN
                SELECT RAISE(ABORT, '{CONSTRAINT_NAME}');
            END
            """
        )


def downgrade() -> None:
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        op.execute(f"ALTER TABLE {TABLE_NAME} DROP CONSTRAINT IF EXISTS {CONSTRAINT_NAME}")
        return
    if bind.dialect.name == "sqlite":
        op.execute(f"DROP TRIGGER IF EXISTS {CONSTRAINT_NAME}_update")
        op.execute(f"DROP TRIGGER IF EXISTS {CONSTRAINT_NAME}_insert")
