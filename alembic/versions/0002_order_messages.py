"""order chat messages

Revision ID: 0002_messages
Revises: 0001_delivery
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa

revision = "0002_messages"
down_revision = "0001_delivery"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "messages",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id"), nullable=False),
        sa.Column("sender_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("sender_type", sa.String(length=16), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_messages_order_created", "messages", ["order_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_messages_order_created", table_name="messages")
    op.drop_table("messages")
