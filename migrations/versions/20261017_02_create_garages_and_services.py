"""create garages and services

Revision ID: 20261017_02
Revises: 20261017_01
Create Date: 2026-10-17 09:10:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261017_02"
down_revision: Union[str, None] = "20261017_01"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "garages",
        sa.Column("id", sa.Integer(), sa.Identity(), primary_key=True, nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("address", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=30), nullable=False),
        sa.Column("user_rating", sa.Float(), nullable=False, server_default="0"),
        sa.Column("opening_time", sa.String(length=5), nullable=False),
        sa.Column("closing_time", sa.String(length=5), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("number_of_bays", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_garages_id", "garages", ["id"], unique=False)
    op.create_index("ix_garages_owner_id", "garages", ["owner_id"], unique=False)

    op.create_table(
        "services",
        sa.Column("id", sa.Integer(), sa.Identity(), primary_key=True, nullable=False),
        sa.Column("garage_id", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(length=40), nullable=False),
        sa.Column("average_cost", sa.Numeric(10, 2), nullable=False),
        sa.Column("estimated_duration_minutes", sa.Integer(), nullable=False),
        sa.Column("created_by_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["garage_id"], ["garages.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by_id"], ["users.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("garage_id", "type", name="uq_services_garage_type"),
        sa.CheckConstraint("average_cost >= 0", name="ck_services_average_cost_non_negative"),
    )
    op.create_index("ix_services_id", "services", ["id"], unique=False)
    op.create_index("ix_services_garage_id", "services", ["garage_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_services_garage_id", table_name="services")
    op.drop_index("ix_services_id", table_name="services")
    op.drop_table("services")
    op.drop_index("ix_garages_owner_id", table_name="garages")
    op.drop_index("ix_garages_id", table_name="garages")
    op.drop_table("garages")
