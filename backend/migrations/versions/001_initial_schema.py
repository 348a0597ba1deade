"""Initial database schema.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Mini-app catalogue (written by the app registry, read by SSO)
    op.create_table(
        "apps",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("launch_mode", sa.String(20), nullable=False, server_default="external"),
        sa.Column("launch_url", sa.Text, nullable=True),
        sa.Column("origin", sa.String(255), nullable=True),
        sa.Column(
            "allowed_origins",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default="[]",
        ),
        sa.Column(
            "allowed_post_message_origins",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default="[]",
        ),
        sa.Column(
            "allowed_start_url_patterns",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default="[]",
        ),
        sa.Column(
            "scopes",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default="[]",
        ),
        sa.Column("sso_mode", sa.String(30), nullable=False, server_default="postMessageTicket"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_apps_status", "apps", ["status"])

    # Embed sessions
    op.create_table(
        "miniapp_sessions",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("app_id", sa.String(36), nullable=False),
        sa.Column("session_nonce", sa.String(64), nullable=False),
        sa.Column("app_origin", sa.String(255), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["app_id"], ["apps.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("session_nonce"),
    )
    op.create_index("idx_miniapp_sessions_user_id", "miniapp_sessions", ["user_id"])
    op.create_index("idx_miniapp_sessions_app_id", "miniapp_sessions", ["app_id"])
    op.create_index("idx_miniapp_sessions_expires_at", "miniapp_sessions", ["expires_at"])

    # Ticket ledger
    op.create_table(
        "sso_tickets",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("jti", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("app_id", sa.String(36), nullable=False),
        sa.Column("used", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["app_id"], ["apps.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("jti"),
    )
    op.create_index("idx_sso_tickets_user_id", "sso_tickets", ["user_id"])
    op.create_index("idx_sso_tickets_app_id", "sso_tickets", ["app_id"])
    op.create_index("idx_sso_tickets_expires_at", "sso_tickets", ["expires_at"])


def downgrade() -> None:
    op.drop_index("idx_sso_tickets_expires_at", table_name="sso_tickets")
    op.drop_index("idx_sso_tickets_app_id", table_name="sso_tickets")
    op.drop_index("idx_sso_tickets_user_id", table_name="sso_tickets")
    op.drop_table("sso_tickets")

    op.drop_index("idx_miniapp_sessions_expires_at", table_name="miniapp_sessions")
    op.drop_index("idx_miniapp_sessions_app_id", table_name="miniapp_sessions")
    op.drop_index("idx_miniapp_sessions_user_id", table_name="miniapp_sessions")
    op.drop_table("miniapp_sessions")

    op.drop_index("idx_apps_status", table_name="apps")
    op.drop_table("apps")
