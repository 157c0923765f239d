"""login links: one-time email login tokens

Revision ID: 20260301_login_link
Revises: 20260101_initial_schema
Create Date: 2026-03-01
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20260301_login_link"
down_revision = "20260101_initial_schema"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "login_link",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("token_hash", sa.String(length=128), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("used_at", sa.DateTime()),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("token_hash", name="uq_login_link_token_hash"),
    )
    op.create_index("ix_login_link_user_expires_at", "login_link", ["user_id", "expires_at"])


def downgrade():
    op.drop_index("ix_login_link_user_expires_at", table_name="login_link")
    op.drop_table("login_link")
