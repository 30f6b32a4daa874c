"""Authorization role models - roles and their assignment to identities."""

from sqlalchemy import ForeignKey, String, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from portal.models.base import Base, TimestampMixin

_DEFAULT_UUID = text("gen_random_uuid()")


class Role(Base, TimestampMixin):
    """Named authorization role ("user", "admin").

    Attributes:
        id: Role id.
        name: Unique role name.
        permissions: Extra permission names granted by the role.
    """

    __tablename__ = "roles"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        server_default=_DEFAULT_UUID,
    )
    name: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
    )
    permissions: Mapped[list] = mapped_column(
        JSONB,
        server_default=text("'[]'::jsonb"),
        nullable=False,
    )


class UserRole(Base, TimestampMixin):
    """Assignment of a role to an identity (composite primary key)."""

    __tablename__ = "user_roles"

    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        primary_key=True,
    )
    role_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("roles.id", ondelete="CASCADE"),
        primary_key=True,
    )
