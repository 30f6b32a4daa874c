"""User preferences model - job search preferences and résumé reference."""

from datetime import datetime

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from portal.models.base import Base, TimestampMixin


class UserPreferences(Base, TimestampMixin):
    """One row per identity, foreign-keyed to profiles.

    company_stage_preferences holds ``{early_stage, late_stage, enterprise}``
    each set to neutral, preferred or avoid.
    """

    __tablename__ = "user_preferences"
    __table_args__ = (
        CheckConstraint(
            "remote_preference IN ('remote', 'hybrid', 'office', 'flexible')",
            name="ck_user_preferences_remote_preference",
        ),
        CheckConstraint(
            "employment_type IN ('full_time', 'part_time', 'contract', 'internship')",
            name="ck_user_preferences_employment_type",
        ),
    )

    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        primary_key=True,
    )
    company_stage_preferences: Mapped[dict] = mapped_column(
        JSONB,
        server_default=text(
            "'{\"early_stage\": \"neutral\", \"late_stage\": \"neutral\", "
            "\"enterprise\": \"neutral\"}'::jsonb"
        ),
        nullable=False,
    )
    locations: Mapped[list] = mapped_column(
        JSONB,
        server_default=text("'[]'::jsonb"),
        nullable=False,
    )
    remote_preference: Mapped[str] = mapped_column(
        String(20),
        server_default="flexible",
        nullable=False,
    )
    employment_type: Mapped[str] = mapped_column(
        String(20),
        server_default="full_time",
        nullable=False,
    )
    graduation_date: Mapped[str | None] = mapped_column(String(20), nullable=True)
    education_level: Mapped[str | None] = mapped_column(String(50), nullable=True)
    experience_level: Mapped[str | None] = mapped_column(String(50), nullable=True)
    salary_min: Mapped[int | None] = mapped_column(Integer, nullable=True)
    salary_max: Mapped[int | None] = mapped_column(Integer, nullable=True)
    resume_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    resume_file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    resume_uploaded_at: Mapped[datetime | None] = mapped_column(nullable=True)
