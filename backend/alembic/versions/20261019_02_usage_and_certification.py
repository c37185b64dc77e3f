"""Create usage tracking and certification submission tables.

Revision ID: 20261019_02_usage_and_certification
Revises: 20261019_01_milestone_progress
Create Date: 2026-10-19 14:00:00.000000
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision = "20261019_02_usage_and_certification"
down_revision = "20261019_01_milestone_progress"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "usage_tracking",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        sa.Column("tutor_sessions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("agent_executions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("skill_uses", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "period_start", name="uq_usage_period"),
    )
    op.create_index("ix_usage_tracking_user_id", "usage_tracking", ["user_id"])

    op.create_table(
        "certification_submissions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("path", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="submitted"),
        sa.Column("project_title", sa.String(length=255), nullable=True),
        sa.Column("artifacts", sa.JSON(), nullable=False, server_default=sa.text("'{}'")),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_certification_submissions_user", "certification_submissions", ["user_id", "path"])


def downgrade() -> None:
    op.drop_index("ix_certification_submissions_user", table_name="certification_submissions")
    op.drop_table("certification_submissions")
    op.drop_index("ix_usage_tracking_user_id", table_name="usage_tracking")
    op.drop_table("usage_tracking")
