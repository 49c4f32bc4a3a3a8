"""initial schema

Revision ID: a1c4e7b2d9f3
Revises:
Create Date: 2026-10-18 12:00:00.000000

This migration:
1. Creates the enum types shared by the entity tables
2. Creates one id sequence per entity kind (nextval, no row locks)
3. Creates the principal tables (users, students, organizations)
4. Creates events, pending_approvals and activities
5. Creates notifications, notification_outbox and push_tokens
6. Creates platform_settings and seeds its single row
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a1c4e7b2d9f3"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


CREDENTIAL_CHECK = (
    "(provider = 'local' AND password_hash IS NOT NULL AND google_id IS NULL) OR "
    "(provider = 'google' AND google_id IS NOT NULL AND password_hash IS NULL)"
)

ID_SEQUENCES = (
    "users",
    "students",
    "organizations",
    "events",
    "pending_approvals",
    "activities",
    "notifications",
)

ENUMS = {
    "auth_provider": ("local", "google"),
    "organization_status": ("active", "pending", "inactive", "suspended"),
    "student_status": ("active", "inactive", "pending", "suspended"),
    "event_status": ("active", "draft", "cancelled", "completed"),
    "approval_status": ("pending", "approved", "rejected"),
    "approval_type": ("organization", "event"),
    "activity_type": (
        "organization_registration",
        "student_registration",
        "event_creation",
        "event_capacity_reached",
        "organization_approved",
        "organization_suspended",
        "student_suspended",
    ),
    "recipient_type": ("student", "organization", "admin"),
    "notification_type": ("event", "organization", "system", "approval", "test"),
    "outbox_status": ("pending", "sent", "skipped", "failed"),
}


def _enum(name: str) -> postgresql.ENUM:
    # Created up front with checkfirst; tables must not re-create them
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _timestamps() -> list[sa.Column]:
    return [
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
    ]


def _credentials() -> list[sa.Column]:
    return [
        sa.Column("password_hash", sa.Text(), nullable=True),
        sa.Column("google_id", sa.String(length=100), nullable=True),
        sa.Column("provider", _enum("auth_provider"), nullable=False),
        sa.Column("email_verified", sa.Boolean(), nullable=False, server_default="false"),
    ]


def upgrade() -> None:
    """Create the full OneAU schema."""
    bind = op.get_bind()
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    for name in ID_SEQUENCES:
        op.execute(sa.schema.CreateSequence(sa.Sequence(f"{name}_id_seq")))

    # ============================================
    # Principals
    # ============================================

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        *_timestamps(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("email_verified", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "students",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        *_timestamps(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("faculty", sa.String(length=200), nullable=False),
        sa.Column("student_id", sa.String(length=50), nullable=False),
        sa.Column("status", _enum("student_status"), nullable=False, server_default="active"),
        sa.Column(
            "followed_orgs",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column(
            "joined_events",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        *_credentials(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_students_email"),
        sa.UniqueConstraint("student_id", name="uq_students_student_id"),
        sa.CheckConstraint(CREDENTIAL_CHECK, name="ck_students_single_credential"),
    )
    op.create_index("ix_students_status", "students", ["status"])
    op.create_index(
        "ix_students_followed_orgs_gin",
        "students",
        ["followed_orgs"],
        postgresql_using="gin",
    )

    op.create_table(
        "organizations",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        *_timestamps(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("type", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("president", sa.String(length=200), nullable=True),
        sa.Column("founded", sa.String(length=50), nullable=True),
        sa.Column("website", sa.String(length=500), nullable=True),
        sa.Column("members", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("followers", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "social_media",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("verification_file", sa.String(length=500), nullable=True),
        sa.Column(
            "status", _enum("organization_status"), nullable=False, server_default="pending"
        ),
        *_credentials(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_organizations_email"),
        sa.CheckConstraint("followers >= 0", name="ck_organizations_followers_non_negative"),
        sa.CheckConstraint("members >= 0", name="ck_organizations_members_non_negative"),
        sa.CheckConstraint(CREDENTIAL_CHECK, name="ck_organizations_single_credential"),
    )
    op.create_index("ix_organizations_status", "organizations", ["status"])
    op.create_index("ix_organizations_type", "organizations", ["type"])

    # ============================================
    # Events and approvals
    # ============================================

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        *_timestamps(),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("date", sa.String(length=20), nullable=False),
        sa.Column("start_time", sa.String(length=10), nullable=False),
        sa.Column("end_time", sa.String(length=10), nullable=False),
        sa.Column("org_id", sa.Integer(), nullable=False),
        sa.Column("org_name", sa.String(length=200), nullable=False),
        sa.Column("type", sa.String(length=100), nullable=False),
        sa.Column("location", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("venue", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="100"),
        sa.Column("registered", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "participants",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("status", _enum("event_status"), nullable=False, server_default="active"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("registered >= 0", name="ck_events_registered_non_negative"),
        sa.CheckConstraint(
            "registered <= capacity", name="ck_events_registered_within_capacity"
        ),
    )
    op.create_index("ix_events_org_id", "events", ["org_id"])
    op.create_index("ix_events_status", "events", ["status"])

    op.create_table(
        "pending_approvals",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        *_timestamps(),
        sa.Column(
            "type", _enum("approval_type"), nullable=False, server_default="organization"
        ),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("applicant", sa.String(length=200), nullable=False),
        sa.Column("date", sa.String(length=10), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column(
            "status", _enum("approval_status"), nullable=False, server_default="pending"
        ),
        sa.Column("org_id", sa.Integer(), nullable=True),
        sa.Column(
            "registration_data",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("verification_file", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("rejection_details", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status <> 'rejected' OR (rejection_details->>'reason' IS NOT NULL AND "
            "rejection_details->>'rejected_by' IS NOT NULL)",
            name="ck_pending_approvals_rejection_details",
        ),
    )
    op.create_index(
        "ix_pending_approvals_status_updated", "pending_approvals", ["status", "updated_at"]
    )
    op.create_index("ix_pending_approvals_email", "pending_approvals", ["email"])

    op.create_table(
        "activities",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("type", _enum("activity_type"), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("user_name", sa.String(length=200), nullable=True),
        sa.Column("user_email", sa.String(length=255), nullable=True),
        sa.Column("organization_id", sa.Integer(), nullable=True),
        sa.Column("organization_name", sa.String(length=200), nullable=True),
        sa.Column("event_id", sa.Integer(), nullable=True),
        sa.Column("event_title", sa.String(length=200), nullable=True),
        sa.Column(
            "metadata",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_activities_created_at", "activities", ["created_at"])
    op.create_index("ix_activities_type_created_at", "activities", ["type", "created_at"])

    # ============================================
    # Notifications
    # ============================================

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("recipient_type", _enum("recipient_type"), nullable=False),
        sa.Column("recipient_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("type", _enum("notification_type"), nullable=False),
        sa.Column(
            "data",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("read", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_notifications_recipient_created",
        "notifications",
        ["recipient_type", "recipient_id", "created_at"],
    )

    op.create_table(
        "notification_outbox",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("notification_id", sa.Integer(), nullable=False),
        sa.Column("status", _enum("outbox_status"), nullable=False, server_default="pending"),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("next_attempt_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["notification_id"],
            ["notifications.id"],
            name="fk_notification_outbox_notification_id",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("notification_id", name="uq_notification_outbox_notification_id"),
    )
    op.create_index(
        "ix_notification_outbox_status_next",
        "notification_outbox",
        ["status", "next_attempt_at"],
    )

    op.create_table(
        "push_tokens",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("recipient_type", _enum("recipient_type"), nullable=False),
        sa.Column("recipient_id", sa.Integer(), nullable=False),
        sa.Column("token", sa.Text(), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("recipient_type", "recipient_id", name="uq_push_tokens_recipient"),
    )

    # ============================================
    # Platform settings
    # ============================================

    op.create_table(
        "platform_settings",
        sa.Column("id", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("platform_name", sa.String(length=100), nullable=False, server_default="OneAU"),
        sa.Column("allow_registration", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("require_approval", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("email_notifications", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("maintenance_mode", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("max_file_size", sa.BigInteger(), nullable=False, server_default="5242880"),
        sa.Column("updated_by", sa.String(length=255), nullable=True),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("id = 1", name="ck_platform_settings_singleton"),
        sa.CheckConstraint(
            "max_file_size BETWEEN 1048576 AND 52428800",
            name="ck_platform_settings_max_file_size",
        ),
    )
    op.execute("INSERT INTO platform_settings (id) VALUES (1) ON CONFLICT DO NOTHING")


def downgrade() -> None:
    """Drop every table and enum type."""
    op.drop_table("platform_settings")
    op.drop_table("push_tokens")
    op.drop_index("ix_notification_outbox_status_next", table_name="notification_outbox")
    op.drop_table("notification_outbox")
    op.drop_index("ix_notifications_recipient_created", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_activities_type_created_at", table_name="activities")
    op.drop_index("ix_activities_created_at", table_name="activities")
    op.drop_table("activities")
    op.drop_index("ix_pending_approvals_email", table_name="pending_approvals")
    op.drop_index("ix_pending_approvals_status_updated", table_name="pending_approvals")
    op.drop_table("pending_approvals")
    op.drop_index("ix_events_status", table_name="events")
    op.drop_index("ix_events_org_id", table_name="events")
    op.drop_table("events")
    op.drop_index("ix_organizations_type", table_name="organizations")
    op.drop_index("ix_organizations_status", table_name="organizations")
    op.drop_table("organizations")
    op.drop_index("ix_students_followed_orgs_gin", table_name="students")
    op.drop_index("ix_students_status", table_name="students")
    op.drop_table("students")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
    for name in ID_SEQUENCES:
        op.execute(sa.schema.DropSequence(sa.Sequence(f"{name}_id_seq")))

    bind = op.get_bind()
    for name in reversed(list(ENUMS)):
        postgresql.ENUM(name=name).drop(bind, checkfirst=True)
