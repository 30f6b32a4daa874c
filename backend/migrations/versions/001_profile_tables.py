"""Create the profile tables: profiles, user_preferences, user_onboarding.

Revision ID: 001_profile_tables
Revises: 000_enable_extensions
Create Date: 2026-10-18

The profile aggregate is stored across these three tables, each keyed by
the identity subject.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_profile_tables"
down_revision: str | None = "000_enable_extensions"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_EMPTY_LIST = sa.text("'[]'::jsonb")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    ]


def _user_fk() -> sa.Column:
    return sa.Column(
        "user_id",
        sa.UUID(),
        sa.ForeignKey("profiles.id", ondelete="CASCADE"),
        primary_key=True,
    )


def upgrade() -> None:
    # Identity subject is the primary key; no generated ids
    op.create_table(
        "profiles",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("full_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("email", sa.String(255), nullable=False, server_default=""),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("provider", sa.String(50), nullable=True),
        sa.Column("phone_number", sa.String(50), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("linkedin_url", sa.Text(), nullable=True),
        sa.Column("github_url", sa.Text(), nullable=True),
        sa.Column("website_url", sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "user_preferences",
        _user_fk(),
        sa.Column(
            "company_stage_preferences",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text(
                "'{\"early_stage\": \"neutral\", \"late_stage\": \"neutral\", "
                "\"enterprise\": \"neutral\"}'::jsonb"
            ),
        ),
        sa.Column("locations", postgresql.JSONB(), nullable=False, server_default=_EMPTY_LIST),
        sa.Column(
            "remote_preference", sa.String(20), nullable=False, server_default="flexible"
        ),
        sa.Column(
            "employment_type", sa.String(20), nullable=False, server_default="full_time"
        ),
        sa.Column("graduation_date", sa.String(20), nullable=True),
        sa.Column("education_level", sa.String(50), nullable=True),
        sa.Column("experience_level", sa.String(50), nullable=True),
        sa.Column("salary_min", sa.Integer(), nullable=True),
        sa.Column("salary_max", sa.Integer(), nullable=True),
        sa.Column("resume_url", sa.Text(), nullable=True),
        sa.Column("resume_file_name", sa.String(255), nullable=True),
        sa.Column("resume_uploaded_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "remote_preference IN ('remote', 'hybrid', 'office', 'flexible')",
            name="ck_user_preferences_remote_preference",
        ),
        sa.CheckConstraint(
            "employment_type IN ('full_time', 'part_time', 'contract', 'internship')",
            name="ck_user_preferences_employment_type",
        ),
    )

    op.create_table(
        "user_onboarding",
        _user_fk(),
        sa.Column(
            "selected_roles", postgresql.JSONB(), nullable=False, server_default=_EMPTY_LIST
        ),
        sa.Column(
            "completed_steps", postgresql.JSONB(), nullable=False, server_default=_EMPTY_LIST
        ),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default="false"),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table("user_onboarding")
    op.drop_table("user_preferences")
    op.drop_table("profiles")
