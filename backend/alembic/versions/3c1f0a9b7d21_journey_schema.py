"""journey schema

Revision ID: 3c1f0a9b7d21
Revises:
Create Date: 2025-11-02 18:20:41.118230

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f0a9b7d21'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "journey_steps",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("phase", sa.String(255), nullable=False),
        sa.Column("date", sa.String(100), nullable=False),
        sa.Column("image_public_id", sa.String(500), nullable=False),
        sa.Column("caption", sa.Text(), nullable=False),
        sa.Column("theme_background", sa.String(50), nullable=False),
        sa.Column("theme_text", sa.String(50), nullable=False),
        sa.Column("theme_accent", sa.String(50), nullable=False),
        sa.Column("step_order", sa.Integer(), nullable=False, unique=True),
        sa.Column(
            "created_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_step_order", "journey_steps", ["step_order"])

    op.create_table(
        "admin_users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(100), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )


def downgrade() -> None:
    op.drop_table("admin_users")
    op.drop_index("idx_step_order", table_name="journey_steps")
    op.drop_table("journey_steps")
