"""add inbox tables

Revision ID: 5b7e2c1a9f3d
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "5b7e2c1a9f3d"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    if nullable:
        return sa.Column(name, sa.DateTime(timezone=True), nullable=True)
    return sa.Column(
        name, sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")
    )


def upgrade() -> None:
    """Upgrade schema: connected accounts, conversations, messages, teams, routing."""
    op.create_table(
        "connected_accounts",
        _id_column(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("platform", sa.String(length=32), nullable=False),
        sa.Column("platform_account_id", sa.String(length=255), nullable=False),
        sa.Column("account_name", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="active"),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column(
            "config", postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")
        ),
        sa.Column("encrypted_credentials", sa.LargeBinary(), nullable=True),
        sa.Column("messages_received", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("messages_sent", sa.Integer(), nullable=False, server_default="0"),
        _timestamp("last_sync_at", nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.UniqueConstraint(
            "user_id",
            "platform",
            "platform_account_id",
            name="uq_connected_accounts_user_platform_account",
        ),
    )
    op.create_index(
        "ix_connected_accounts_user_id", "connected_accounts", ["user_id"], unique=False
    )

    op.create_table(
        "conversations",
        _id_column(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("connected_account_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("platform", sa.String(length=32), nullable=False),
        sa.Column("platform_conversation_id", sa.String(length=512), nullable=False),
        sa.Column("participant_id", sa.String(length=255), nullable=False),
        sa.Column("participant_username", sa.String(length=255), nullable=True),
        sa.Column("participant_name", sa.String(length=255), nullable=True),
        sa.Column("participant_avatar_url", sa.String(length=1024), nullable=True),
        sa.Column("platform_post_id", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="unread"),
        sa.Column("priority", sa.String(length=16), nullable=False, server_default="normal"),
        sa.Column("sentiment", sa.String(length=16), nullable=True),
        sa.Column("assigned_to", postgresql.UUID(as_uuid=True), nullable=True),
        _timestamp("assigned_at", nullable=True),
        sa.Column(
            "tags", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")
        ),
        sa.Column("message_count", sa.Integer(), nullable=False, server_default="0"),
        _timestamp("last_message_at"),
        _timestamp("last_customer_message_at", nullable=True),
        _timestamp("last_brand_reply_at", nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(
            ["connected_account_id"], ["connected_accounts.id"], ondelete="SET NULL"
        ),
        sa.UniqueConstraint(
            "user_id",
            "platform",
            "platform_conversation_id",
            name="uq_conversations_user_platform_external",
        ),
    )
    op.create_index("ix_conversations_user_id", "conversations", ["user_id"], unique=False)
    op.create_index(
        "ix_conversations_user_last_message_at",
        "conversations",
        ["user_id", "last_message_at"],
        unique=False,
    )

    op.create_table(
        "messages",
        _id_column(),
        sa.Column("conversation_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("platform_message_id", sa.String(length=255), nullable=False),
        sa.Column("direction", sa.String(length=16), nullable=False),
        sa.Column("message_type", sa.String(length=32), nullable=False, server_default="text"),
        sa.Column("text_content", sa.Text(), nullable=True),
        sa.Column("media_url", sa.String(length=2048), nullable=True),
        sa.Column("media_type", sa.String(length=128), nullable=True),
        sa.Column("sender_id", sa.String(length=255), nullable=True),
        sa.Column("sender_username", sa.String(length=255), nullable=True),
        sa.Column("sender_name", sa.String(length=255), nullable=True),
        sa.Column("sent_by_user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        _timestamp("sent_at"),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["conversation_id"], ["conversations.id"], ondelete="CASCADE"),
        sa.UniqueConstraint(
            "conversation_id",
            "platform_message_id",
            name="uq_messages_conversation_platform_message",
        ),
    )
    op.create_index(
        "ix_messages_conversation_sent_at",
        "messages",
        ["conversation_id", "sent_at"],
        unique=False,
    )

    op.create_table(
        "teams",
        _id_column(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("color", sa.String(length=7), nullable=False, server_default="#3B82F6"),
        sa.Column("member_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("conversation_count", sa.Integer(), nullable=False, server_default="0"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_teams_user_id", "teams", ["user_id"], unique=False)

    op.create_table(
        "conversation_teams",
        _id_column(),
        sa.Column("conversation_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("team_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("auto_assigned", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("confidence_score", sa.Float(), nullable=True),
        sa.Column("ai_reasoning", sa.Text(), nullable=True),
        sa.Column("assigned_by", postgresql.UUID(as_uuid=True), nullable=True),
        _timestamp("assigned_at"),
        sa.ForeignKeyConstraint(["conversation_id"], ["conversations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["team_id"], ["teams.id"], ondelete="CASCADE"),
        sa.UniqueConstraint(
            "conversation_id", "team_id", name="uq_conversation_teams_conversation_team"
        ),
        sa.CheckConstraint(
            "(auto_assigned AND confidence_score IS NOT NULL AND assigned_by IS NULL)"
            " OR (NOT auto_assigned AND confidence_score IS NULL AND assigned_by IS NOT NULL)",
            name="ck_conversation_teams_assignment_source",
        ),
    )

    op.create_table(
        "message_ai_analysis",
        _id_column(),
        sa.Column("message_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("conversation_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("analyzed_content", sa.Text(), nullable=True),
        sa.Column("detected_intent", sa.String(length=64), nullable=True),
        sa.Column("detected_language", sa.String(length=16), nullable=True),
        sa.Column(
            "suggested_team_ids",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column(
            "confidence_scores",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("ai_reasoning", sa.Text(), nullable=True),
        sa.Column("model_used", sa.String(length=128), nullable=True),
        sa.Column("tokens_used", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("processing_time_ms", sa.Integer(), nullable=False, server_default="0"),
        _timestamp("analyzed_at"),
        sa.ForeignKeyConstraint(["message_id"], ["messages.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["conversation_id"], ["conversations.id"], ondelete="CASCADE"),
    )
    op.create_index(
        "ix_message_ai_analysis_message_id",
        "message_ai_analysis",
        ["message_id"],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema: drop inbox tables."""
    op.drop_index("ix_message_ai_analysis_message_id", table_name="message_ai_analysis")
    op.drop_table("message_ai_analysis")
    op.drop_table("conversation_teams")
    op.drop_index("ix_teams_user_id", table_name="teams")
    op.drop_table("teams")
    op.drop_index("ix_messages_conversation_sent_at", table_name="messages")
    op.drop_table("messages")
    op.drop_index("ix_conversations_user_last_message_at", table_name="conversations")
    op.drop_index("ix_conversations_user_id", table_name="conversations")
    op.drop_table("conversations")
    op.drop_index("ix_connected_accounts_user_id", table_name="connected_accounts")
    op.drop_table("connected_accounts")
