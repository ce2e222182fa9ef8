"""Create routine and scheduled occurrence tables

Revision ID: 001_routine_schedule
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001_routine_schedule"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create subscribers, routines, routine_products and scheduled_occurrences"""

    # Subscriber profile columns beyond the timezone are owned elsewhere
    op.create_table(
        "subscribers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "timezone", sa.String(length=64), nullable=False, server_default="UTC"
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "routines",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("subscriber_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column(
            "status", sa.String(length=20), nullable=False, server_default="draft"
        ),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "status IN ('draft', 'published')", name="routines_status_check"
        ),
        sa.CheckConstraint(
            "end_date IS NULL OR end_date >= start_date",
            name="routines_date_range_check",
        ),
        sa.ForeignKeyConstraint(
            ["subscriber_id"], ["subscribers.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_routines_subscriber_id", "routines", ["subscriber_id"])
    op.create_index(
        "idx_routines_published",
        "routines",
        ["id"],
        postgresql_where=sa.text("status = 'published'"),
    )

    op.create_table(
        "routine_products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("routine_id", sa.Integer(), nullable=False),
        sa.Column("subscriber_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("time_of_day", sa.String(length=20), nullable=False),
        sa.Column("frequency_kind", sa.String(length=20), nullable=False),
        sa.Column("weekday_mask", sa.SmallInteger(), nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "time_of_day IN ('morning', 'evening')",
            name="routine_products_time_of_day_check",
        ),
        sa.CheckConstraint(
            "(frequency_kind = 'daily' AND weekday_mask IS NULL) OR "
            "(frequency_kind = 'weekdays' AND weekday_mask BETWEEN 1 AND 127)",
            name="routine_products_frequency_check",
        ),
        sa.ForeignKeyConstraint(["routine_id"], ["routines.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_routine_products_routine_id", "routine_products", ["routine_id"]
    )

    op.create_table(
        "scheduled_occurrences",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("routine_product_id", sa.Integer(), nullable=False),
        sa.Column("subscriber_id", sa.Integer(), nullable=False),
        sa.Column("scheduled_date", sa.Date(), nullable=False),
        sa.Column("scheduled_time_of_day", sa.String(length=20), nullable=False),
        sa.Column("on_time_deadline", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("grace_period_end", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("completed_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column(
            "status", sa.String(length=20), nullable=False, server_default="pending"
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "status IN ('pending', 'on-time', 'late', 'missed')",
            name="scheduled_occurrences_status_check",
        ),
        sa.CheckConstraint(
            "grace_period_end >= on_time_deadline",
            name="scheduled_occurrences_deadline_order_check",
        ),
        sa.CheckConstraint(
            "(status IN ('on-time', 'late')) = (completed_at IS NOT NULL)",
            name="scheduled_occurrences_completion_check",
        ),
        sa.ForeignKeyConstraint(
            ["routine_product_id"], ["routine_products.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    # Regeneration deletes
    op.create_index(
        "idx_occurrences_product_date",
        "scheduled_occurrences",
        ["routine_product_id", "scheduled_date"],
    )
    # Compliance reporting
    op.create_index(
        "idx_occurrences_subscriber_date",
        "scheduled_occurrences",
        ["subscriber_id", "scheduled_date"],
    )
    # Expiry sweep
    op.create_index(
        "idx_occurrences_pending_grace",
        "scheduled_occurrences",
        ["grace_period_end"],
        postgresql_where=sa.text("status = 'pending'"),
    )


def downgrade() -> None:
    """Drop the routine schedule tables"""

    op.drop_index("idx_occurrences_pending_grace", table_name="scheduled_occurrences")
    op.drop_index(
        "idx_occurrences_subscriber_date", table_name="scheduled_occurrences"
    )
    op.drop_index("idx_occurrences_product_date", table_name="scheduled_occurrences")
    op.drop_table("scheduled_occurrences")

    op.drop_index("idx_routine_products_routine_id", table_name="routine_products")
    op.drop_table("routine_products")

    op.drop_index("idx_routines_published", table_name="routines")
    op.drop_index("idx_routines_subscriber_id", table_name="routines")
    op.drop_table("routines")

    op.drop_table("subscribers")
