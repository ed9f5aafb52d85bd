"""add lead_activities and lead contact dates

Revision ID: 7c9d2e4f6a8b
Revises: 1a2b3c4d5e6f
Create Date: 2026-10-18 10:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "7c9d2e4f6a8b"
down_revision: Union[str, None] = "1a2b3c4d5e6f"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column("leads", sa.Column("last_contact", sa.Date(), nullable=True))
    op.add_column("leads", sa.Column("next_follow_up", sa.Date(), nullable=True))

    op.create_table(
        "lead_activities",
        sa.Column(
            "activity_id",
            postgresql.UUID(as_uuid=True),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column(
            "lead_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("leads.lead_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("details", sa.Text(), nullable=False),
        sa.Column("user_id", sa.String(length=100), nullable=True),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint(
            "type IN ('Call', 'Email', 'Note', 'Meeting', 'StageChange')",
            name="ck_activity_type",
        ),
    )
    op.create_index(
        "ix_lead_activities_tenant_lead",
        "lead_activities",
        ["tenant_id", "lead_id", "timestamp"],
    )


def downgrade() -> None:
    op.drop_index("ix_lead_activities_tenant_lead", table_name="lead_activities")
    op.drop_table("lead_activities")
    op.drop_column("leads", "next_follow_up")
    op.drop_column("leads", "last_contact")
