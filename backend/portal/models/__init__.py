"""SQLAlchemy ORM models for the portal.

All models are exported from this module for convenient imports:
    from portal.models import Profile, UserPreferences, ...

Models are organized by table:
- profile.py: Profile
- user_preferences.py: UserPreferences
- user_onboarding.py: UserOnboarding
- role.py: Role, UserRole
"""

from portal.models.base import Base, TimestampMixin
from portal.models.profile import Profile
from portal.models.role import Role, UserRole
from portal.models.user_onboarding import UserOnboarding
from portal.models.user_preferences import UserPreferences

__all__ = [
    "Base",
    "TimestampMixin",
    "Profile",
    "Role",
    "UserOnboarding",
    "UserPreferences",
    "UserRole",
]
