"""create arina schema

Revision ID: 20261019_arina_schema
Revises: 
Create Date: 2026-10-19 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_arina_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return (
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def _owner():
    return sa.Column(
        "user_id", sa.String(length=40), sa.ForeignKey("auth_users.id", ondelete="CASCADE"), nullable=False
    )


def upgrade() -> None:
    op.create_table(
        "auth_users",
        sa.Column("id", sa.String(length=40), primary_key=True),
        *_timestamps(),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("1"), nullable=False),
        sa.Column("display_name", sa.String(length=320), nullable=True),
        sa.Column("preferences", sa.JSON(), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_active_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_table(
        "auth_sessions",
        sa.Column("id", sa.String(length=72), primary_key=True),
        *_timestamps(),
        _owner(),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("refresh_expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("refresh_token_hash", sa.String(length=128), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_seen_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_auth_users_email", "auth_users", ["email"], unique=True)
    op.create_index("ix_auth_sessions_user_id", "auth_sessions", ["user_id"])
    op.create_index("ix_auth_sessions_expiry", "auth_sessions", ["expires_at"])

    op.create_table(
        "chats",
        sa.Column("id", sa.String(length=40), primary_key=True),
        *_timestamps(),
        _owner(),
        sa.Column("title", sa.String(length=512), nullable=False),
    )
    op.create_table(
        "messages",
        sa.Column("id", sa.String(length=40), primary_key=True),
        *_timestamps(),
        sa.Column("chat_id", sa.String(length=40), sa.ForeignKey("chats.id", ondelete="CASCADE"), nullable=False),
        _owner(),
        sa.Column("role", sa.String(length=16), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
    )
    op.create_index("ix_chats_user_id", "chats", ["user_id"])
    op.create_index("ix_messages_chat_id", "messages", ["chat_id"])
    op.create_index("ix_messages_user_id", "messages", ["user_id"])
    op.create_index("ix_messages_chat_created", "messages", ["chat_id", "created_at"])

    op.create_table(
        "conversations",
        sa.Column("id", sa.String(length=40), primary_key=True),
        *_timestamps(),
        _owner(),
        sa.Column("title", sa.String(length=512), nullable=False),
        sa.Column("analysis_type", sa.String(length=64), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False),
    )
    op.create_table(
        "memory_messages",
        sa.Column("id", sa.String(length=40), primary_key=True),
        *_timestamps(),
        sa.Column(
            "conversation_id",
            sa.String(length=40),
            sa.ForeignKey("conversations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("role", sa.String(length=16), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("embedding", sa.JSON(), nullable=True),
    )
    op.create_index("ix_conversations_user_id", "conversations", ["user_id"])
    op.create_index("ix_memory_messages_conversation_id", "memory_messages", ["conversation_id"])

    op.create_table(
        "user_profiles",
        sa.Column("id", sa.String(length=40), primary_key=True),
        *_timestamps(),
        sa.Column(
            "user_id",
            sa.String(length=40),
            sa.ForeignKey("auth_users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("business_name", sa.String(length=255), nullable=True),
        sa.Column("business_type", sa.String(length=255), nullable=True),
        sa.Column("farm_size", sa.Float(), nullable=True),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("main_crops", sa.JSON(), nullable=False),
    )
    op.create_table(
        "entities",
        sa.Column("id", sa.String(length=40), primary_key=True),
        *_timestamps(),
        _owner(),
        sa.Column("entity_type", sa.String(length=64), nullable=False),
        sa.Column("entity_name", sa.String(length=255), nullable=False),
        sa.Column("attributes", sa.JSON(), nullable=False),
        sa.UniqueConstraint("user_id", "entity_type", "entity_name", name="uq_entities_owner_type_name"),
    )
    op.create_table(
        "user_session_data",
        sa.Column("id", sa.String(length=40), primary_key=True),
        *_timestamps(),
        _owner(),
        sa.Column("session_key", sa.String(length=128), nullable=False),
        sa.Column("session_data", sa.JSON(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_id", "session_key", name="uq_session_data_owner_key"),
    )
    op.create_index("ix_user_profiles_user_id", "user_profiles", ["user_id"], unique=True)
    op.create_index("ix_entities_user_id", "entities", ["user_id"])
    op.create_index("ix_user_session_data_user_id", "user_session_data", ["user_id"])
    op.create_index("ix_user_session_data_expires_at", "user_session_data", ["expires_at"])

    op.create_table(
        "analysis_results",
        sa.Column("id", sa.String(length=40), primary_key=True),
        *_timestamps(),
        _owner(),
        sa.Column("feature_id", sa.String(length=64), nullable=False),
        sa.Column("inputs", sa.JSON(), nullable=False),
        sa.Column("result", sa.JSON(), nullable=False),
        sa.Column("image_url", sa.String(length=2048), nullable=True),
    )
    op.create_index("ix_analysis_results_user_id", "analysis_results", ["user_id"])
    op.create_index("ix_analysis_results_feature_id", "analysis_results", ["feature_id"])


def downgrade() -> None:
    op.drop_index("ix_analysis_results_feature_id", table_name="analysis_results")
    op.drop_index("ix_analysis_results_user_id", table_name="analysis_results")
    op.drop_table("analysis_results")
    op.drop_index("ix_user_session_data_expires_at", table_name="user_session_data")
    op.drop_index("ix_user_session_data_user_id", table_name="user_session_data")
    op.drop_index("ix_entities_user_id", table_name="entities")
    op.drop_index("ix_user_profiles_user_id", table_name="user_profiles")
    op.drop_table("user_session_data")
    op.drop_table("entities")
    op.drop_table("user_profiles")
    op.drop_index("ix_memory_messages_conversation_id", table_name="memory_messages")
    op.drop_index("ix_conversations_user_id", table_name="conversations")
    op.drop_table("memory_messages")
    op.drop_table("conversations")
    op.drop_index("ix_messages_chat_created", table_name="messages")
    op.drop_index("ix_messages_user_id", table_name="messages")
    op.drop_index("ix_messages_chat_id", table_name="messages")
    op.drop_index("ix_chats_user_id", table_name="chats")
    op.drop_table("messages")
    op.drop_table("chats")
    op.drop_index("ix_auth_sessions_expiry", table_name="auth_sessions")
    op.drop_index("ix_auth_sessions_user_id", table_name="auth_sessions")
    op.drop_table("auth_sessions")
    op.drop_index("ix_auth_users_email", table_name="auth_users")
    op.drop_table("auth_users")
