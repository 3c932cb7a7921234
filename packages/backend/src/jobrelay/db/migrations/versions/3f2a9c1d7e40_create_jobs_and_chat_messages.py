"""create jobs and chat_messages

Learn: Initial schema for the document store. Jobs keep the full posting
as JSONB next to the two columns every broadcast needs; chat messages are
indexed by participant pair + time for conversation history.

Revision ID: 3f2a9c1d7e40
Revises:
Create Date: 2026-10-18 09:12:44.501233
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7e40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ─── Jobs ────────────────────────────────────────────
    op.create_table(
        "jobs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("company_name", sa.String(300), nullable=False),
        sa.Column(
            "payload",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    # ─── Chat messages ───────────────────────────────────
    op.create_table(
        "chat_messages",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("sender_identity", sa.String(320), nullable=False),
        sa.Column("receiver_identity", sa.String(320), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("room_id", sa.String(641), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "idx_chat_messages_room", "chat_messages", ["room_id", "timestamp"]
    )
    op.execute(
        "CREATE INDEX idx_chat_messages_participants ON chat_messages "
        "(sender_identity, receiver_identity, timestamp DESC)"
    )


def downgrade() -> None:
    op.drop_index("idx_chat_messages_participants", table_name="chat_messages")
    op.drop_index("idx_chat_messages_room", table_name="chat_messages")
    op.drop_table("chat_messages")
    op.drop_table("jobs")
