"""create chat, rate limit, webhook and discovery call tables

Revision ID: 3f1c9a7d2b10
Revises:
Create Date: 2026-10-17 10:12:41.204117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "discovery_calls_knowledge",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("entreprise", sa.String(), nullable=False, server_default=""),
        sa.Column("secteur", sa.String(), nullable=False, server_default=""),
        sa.Column("besoin", sa.Text(), nullable=False, server_default=""),
        sa.Column("contexte", sa.Text(), nullable=False, server_default=""),
        sa.Column("phase_1_introduction", sa.Text(), nullable=True),
        sa.Column("phase_2_exploration", sa.Text(), nullable=True),
        sa.Column("phase_3_affinage", sa.Text(), nullable=True),
        sa.Column("phase_4_next_steps", sa.Text(), nullable=True),
        sa.Column("raw_data", sa.JSON(), nullable=False),
        sa.Column("import_batch_id", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "ix_discovery_calls_knowledge_import_batch_id",
        "discovery_calls_knowledge",
        ["import_batch_id"],
    )

    op.create_table(
        "lead_conversations",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("session_id", sa.String(), nullable=False),
        sa.Column("is_qualified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("qualification_data", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_lead_conversations_session_id", "lead_conversations", ["session_id"])

    op.create_table(
        "chat_messages",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "conversation_id",
            sa.String(),
            sa.ForeignKey("lead_conversations.id"),
            nullable=False,
        ),
        sa.Column("role", sa.String(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_chat_messages_conversation_id", "chat_messages", ["conversation_id"])

    op.create_table(
        "rate_limits",
        sa.Column("session_id", sa.String(), primary_key=True),
        sa.Column("request_count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("window_start", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "n8n_webhooks",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False, server_default=""),
        sa.Column("webhook_url", sa.String(), nullable=True),
        sa.Column("trigger_event", sa.String(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("n8n_webhooks")
    op.drop_table("rate_limits")
    op.drop_index("ix_chat_messages_conversation_id", table_name="chat_messages")
    op.drop_table("chat_messages")
    op.drop_index("ix_lead_conversations_session_id", table_name="lead_conversations")
    op.drop_table("lead_conversations")
    op.drop_index(
        "ix_discovery_calls_knowledge_import_batch_id",
        table_name="discovery_calls_knowledge",
    )
    op.drop_table("discovery_calls_knowledge")
