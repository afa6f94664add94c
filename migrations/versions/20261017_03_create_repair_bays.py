"""create repair bays

Revision ID: 20261017_03
Revises: 20261017_02
Create Date: 2026-10-17 09:20:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261017_03"
down_revision: Union[str, None] = "20261017_02"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "repair_bays",
        sa.Column("id", sa.Integer(), sa.Identity(), primary_key=True, nullable=False),
        sa.Column("garage_id", sa.Integer(), nullable=False),
        sa.Column("bay_number", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("opening_time", sa.String(length=5), nullable=False),
        sa.Column("closing_time", sa.String(length=5), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["garage_id"], ["garages.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("garage_id", "bay_number", name="uq_repair_bays_garage_bay_number"),
        sa.CheckConstraint("bay_number >= 1", name="ck_repair_bays_bay_number_positive"),
    )
    op.create_index("ix_repair_bays_id", "repair_bays", ["id"], unique=False)
    op.create_index("ix_repair_bays_garage_id", "repair_bays", ["garage_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_repair_bays_garage_id", table_name="repair_bays")
    op.drop_index("ix_repair_bays_id", table_name="repair_bays")
    op.drop_table("repair_bays")
