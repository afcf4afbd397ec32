"""Initial schema with all tables.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

This migration creates the complete Polymath database schema:
- Tables: users, conversations, messages, files, code_projects, code_files
- Indexes: per-user recency lookups, message history, file keys
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ==========================================================================
    # USERS TABLE
    # ==========================================================================
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("open_id", sa.String(64), nullable=False),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("login_method", sa.String(64), nullable=True),
        sa.Column("role", sa.String(16), nullable=False, server_default="user"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.Column("last_signed_in", sa.DateTime(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.CheckConstraint("role IN ('user', 'admin')", name="valid_user_role"),
    )
    op.create_index("ix_users_open_id", "users", ["open_id"], unique=True)

    # ==========================================================================
    # CONVERSATIONS TABLE
    # ==========================================================================
    op.create_table(
        "conversations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("model", sa.String(64), nullable=False),
        sa.Column("is_favorite", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("tags", sa.JSON(), nullable=False, server_default="[]"),
        sa.Column("title_generated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.CheckConstraint("is_favorite IN (0, 1)", name="valid_is_favorite"),
    )
    op.create_index("idx_conversations_user_updated_at", "conversations", ["user_id", "updated_at"])

    # ==========================================================================
    # MESSAGES TABLE
    # ==========================================================================
    op.create_table(
        "messages",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "conversation_id",
            sa.Integer(),
            sa.ForeignKey("conversations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("role", sa.String(16), nullable=False),  # 'user', 'assistant' or 'system'
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=True),  # model, token usage
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.CheckConstraint("role IN ('user', 'assistant', 'system')", name="valid_message_role"),
    )
    op.create_index("idx_messages_conversation_created", "messages", ["conversation_id", "created_at"])

    # ==========================================================================
    # FILES TABLE
    # ==========================================================================
    op.create_table(
        "files",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "conversation_id",
            sa.Integer(),
            sa.ForeignKey("conversations.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("filename", sa.String(255), nullable=False),
        sa.Column("file_key", sa.String(1024), nullable=False, unique=True),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("mime_type", sa.String(127), nullable=True),
        sa.Column("size", sa.Integer(), nullable=True),
        sa.Column("extracted_text", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()"), nullable=False),
    )
    op.create_index("idx_files_user_created", "files", ["user_id", "created_at"])
    op.create_index("idx_files_conversation_id", "files", ["conversation_id"])

    # ==========================================================================
    # CODE PROJECTS TABLE
    # ==========================================================================
    op.create_table(
        "code_projects",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("language", sa.String(64), nullable=False, server_default="javascript"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()"), nullable=False),
    )
    op.create_index("idx_code_projects_user_updated_at", "code_projects", ["user_id", "updated_at"])

    # ==========================================================================
    # CODE FILES TABLE
    # ==========================================================================
    op.create_table(
        "code_files",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "project_id",
            sa.Integer(),
            sa.ForeignKey("code_projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("filename", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("language", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()"), nullable=False),
    )
    op.create_index("ix_code_files_project_id", "code_files", ["project_id"])


def downgrade() -> None:
    op.drop_index("ix_code_files_project_id", table_name="code_files")
    op.drop_table("code_files")

    op.drop_index("idx_code_projects_user_updated_at", table_name="code_projects")
    op.drop_table("code_projects")

    op.drop_index("idx_files_conversation_id", table_name="files")
    op.drop_index("idx_files_user_created", table_name="files")
    op.drop_table("files")

    op.drop_index("idx_messages_conversation_created", table_name="messages")
    op.drop_table("messages")

    op.drop_index("idx_conversations_user_updated_at", table_name="conversations")
    op.drop_table("conversations")

    op.drop_index("ix_users_open_id", table_name="users")
    op.drop_table("users")
