"""Field visibility tiers.

Onboarding shows only the ESSENTIAL fields; the full profile shows all of
them.
"""

from enum import Enum, IntEnum
from typing import Any


class FieldTier(IntEnum):
    """Visibility tier of a profile field, most to least important."""

    ESSENTIAL = 1
    IMPORTANT = 2
    COMPREHENSIVE = 3


class NavigationMode(str, Enum):
    """The two ways the section wizard can be driven."""

    ONBOARDING = "onboarding"
    PROFILE = "profile"


def resolve_tier(tier: Any) -> FieldTier:
    """Normalize a tier value, treating anything unrecognized as COMPREHENSIVE.

    Accepts FieldTier members, their integer values, or their names in any
    case.
    """
    if isinstance(tier, FieldTier):
        return tier
    if isinstance(tier, int) and not isinstance(tier, bool):
        try:
            return FieldTier(tier)
        except ValueError:
            return FieldTier.COMPREHENSIVE
    if isinstance(tier, str):
        member = FieldTier.__members__.get(tier.strip().upper())
        if member is not None:
            return member
    return FieldTier.COMPREHENSIVE


def is_visible(field: Any, mode: NavigationMode | str) -> bool:
    """Whether a field is shown in the given mode.

    Args:
        field: Anything with a ``tier`` attribute (a Field from the section
            table, typically). A missing tier counts as COMPREHENSIVE.
        mode: Navigation mode or its string value.

    Returns:
        True for every field in profile mode; True only for ESSENTIAL fields
        in onboarding mode.
    """
    if NavigationMode(mode) is NavigationMode.PROFILE:
        return True
    return resolve_tier(getattr(field, "tier", None)) is FieldTier.ESSENTIAL
