"""initial mcn admin schema

Revision ID: 20261018_initial_mcn_schema
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261018_initial_mcn_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "staff_users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="viewer"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.UniqueConstraint("email", name="uq_staff_users_email"),
    )
    op.create_index("ix_staff_users_email", "staff_users", ["email"])

    for table, length in (("teams", 120), ("networks", 120)):
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("name", sa.String(length=length), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
            sa.UniqueConstraint("name", name=f"uq_{table}_name"),
        )

    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.UniqueConstraint("name", name="uq_projects_name"),
    )

    op.create_table(
        "channels",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("youtube_channel_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="active"),
        sa.Column("avatar_url", sa.String(length=1024), nullable=True),
        sa.Column("subscriber_count", sa.BigInteger(), nullable=True),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id", ondelete="SET NULL"), nullable=True),
        sa.Column("network_id", sa.Integer(), sa.ForeignKey("networks.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.UniqueConstraint("youtube_channel_id", name="uq_channels_youtube_channel_id"),
    )
    op.create_index("ix_channels_youtube_channel_id", "channels", ["youtube_channel_id"])
    op.create_index("ix_channels_status", "channels", ["status"])
    op.create_index("ix_channels_team_id", "channels", ["team_id"])
    op.create_index("ix_channels_network_id", "channels", ["network_id"])

    op.create_table(
        "staff_channels",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("staff_id", sa.Integer(), sa.ForeignKey("staff_users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("channel_id", sa.Integer(), sa.ForeignKey("channels.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False, server_default="manager"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.UniqueConstraint("staff_id", "channel_id", "role", name="uq_staff_channels_staff_channel_role"),
    )
    op.create_index("ix_staff_channels_staff_id", "staff_channels", ["staff_id"])
    op.create_index("ix_staff_channels_channel_id", "staff_channels", ["channel_id"])
    op.create_index("ix_staff_channels_channel_role", "staff_channels", ["channel_id", "role"])

    op.create_table(
        "project_channels",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("channel_id", sa.Integer(), sa.ForeignKey("channels.id", ondelete="CASCADE"), nullable=False),
        sa.UniqueConstraint("project_id", "channel_id", name="uq_project_channels_project_channel"),
    )
    op.create_index("ix_project_channels_project_id", "project_channels", ["project_id"])
    op.create_index("ix_project_channels_channel_id", "project_channels", ["channel_id"])

    op.create_table(
        "channel_metrics_daily",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("channel_id", sa.Integer(), sa.ForeignKey("channels.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("views", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("watch_time_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("revenue", sa.Numeric(18, 4), nullable=False, server_default="0"),
        sa.Column("subs_gained", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("subs_lost", sa.Integer(), nullable=False, server_default="0"),
        sa.UniqueConstraint("channel_id", "date", name="uq_channel_metrics_daily_channel_date"),
    )
    op.create_index("ix_channel_metrics_daily_date", "channel_metrics_daily", ["date"])

    op.create_table(
        "action_audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("action", sa.String(length=80), nullable=False),
        sa.Column("entity_type", sa.String(length=80), nullable=False),
        sa.Column("entity_id", sa.String(length=120), nullable=True),
        sa.Column("details_json", sa.JSON(), nullable=True),
        sa.Column("actor_user_id", sa.Integer(), nullable=True),
        sa.Column("actor_email", sa.String(length=255), nullable=True),
        sa.Column("request_id", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    )
    op.create_index("ix_action_audit_logs_action", "action_audit_logs", ["action"])
    op.create_index("ix_action_audit_logs_entity_type", "action_audit_logs", ["entity_type"])
    op.create_index("ix_action_audit_logs_actor_user_id", "action_audit_logs", ["actor_user_id"])
    op.create_index("ix_action_audit_logs_created_at", "action_audit_logs", ["created_at"])
    op.create_index(
        "ix_action_audit_entity_created",
        "action_audit_logs",
        ["entity_type", "entity_id", "created_at"],
    )


def downgrade():
    op.drop_index("ix_action_audit_entity_created", table_name="action_audit_logs")
    op.drop_index("ix_action_audit_logs_created_at", table_name="action_audit_logs")
    op.drop_index("ix_action_audit_logs_actor_user_id", table_name="action_audit_logs")
    op.drop_index("ix_action_audit_logs_entity_type", table_name="action_audit_logs")
    op.drop_index("ix_action_audit_logs_action", table_name="action_audit_logs")
    op.drop_table("action_audit_logs")

    op.drop_index("ix_channel_metrics_daily_date", table_name="channel_metrics_daily")
    op.drop_table("channel_metrics_daily")

    op.drop_index("ix_project_channels_channel_id", table_name="project_channels")
    op.drop_index("ix_project_channels_project_id", table_name="project_channels")
    op.drop_table("project_channels")

    op.drop_index("ix_staff_channels_channel_role", table_name="staff_channels")
    op.drop_index("ix_staff_channels_channel_id", table_name="staff_channels")
    op.drop_index("ix_staff_channels_staff_id", table_name="staff_channels")
    op.drop_table("staff_channels")

    op.drop_index("ix_channels_network_id", table_name="channels")
    op.drop_index("ix_channels_team_id", table_name="channels")
    op.drop_index("ix_channels_status", table_name="channels")
    op.drop_index("ix_channels_youtube_channel_id", table_name="channels")
    op.drop_table("channels")

    op.drop_table("projects")
    op.drop_table("networks")
    op.drop_table("teams")

    op.drop_index("ix_staff_users_email", table_name="staff_users")
    op.drop_table("staff_users")
