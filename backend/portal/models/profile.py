"""Profile model - one row per identity.

Keyed by the identity service's subject, so the primary key is assigned by
the caller rather than generated.
"""

from sqlalchemy import String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from portal.models.base import Base, TimestampMixin


class Profile(Base, TimestampMixin):
    """Contact details and external links for a candidate.

    Attributes:
        id: Identity subject (auth user id).
        full_name: Display name; required before leaving the personal section.
        email: Contact email.
        avatar_url: Picture URL copied from OAuth metadata on first sign-in.
        provider: Sign-in method ("email", "google", ...).
        phone_number: Optional phone, loose format.
        location: Free-text current location.
        title: Current or desired job title.
        bio: Short professional summary.
        linkedin_url: LinkedIn profile URL.
        github_url: GitHub profile URL.
        website_url: Personal site URL.
    """

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
    )
    full_name: Mapped[str] = mapped_column(
        String(255),
        server_default="",
        nullable=False,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        server_default="",
        nullable=False,
    )
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    provider: Mapped[str | None] = mapped_column(String(50), nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    linkedin_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    github_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    website_url: Mapped[str | None] = mapped_column(Text, nullable=True)
