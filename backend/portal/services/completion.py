"""Onboarding completion evaluator.

The dashboard unlocks when onboarding counts as complete. Two policies:

- explicit_or_heuristic (default): the persisted flag, OR at least one
  selected role together with at least two completed sections. The
  heuristic can mark a user complete who never pressed "finish".
- explicit_only: the persisted flag alone.
"""

from dataclasses import dataclass
from enum import Enum

from portal.services.profile_aggregate import ProfileAggregate

# welcome + one real section
MIN_COMPLETED_STEPS = 2


class CompletionPolicy(str, Enum):
    EXPLICIT_OR_HEURISTIC = "explicit_or_heuristic"
    EXPLICIT_ONLY = "explicit_only"


def meets_minimum_requirements(aggregate: ProfileAggregate) -> bool:
    return (
        len(aggregate.selected_roles) > 0
        and len(aggregate.completed_steps) >= MIN_COMPLETED_STEPS
    )


def is_onboarding_complete(
    aggregate: ProfileAggregate | None,
    policy: CompletionPolicy | str = CompletionPolicy.EXPLICIT_OR_HEURISTIC,
) -> bool:
    """Derive the "onboarding complete" signal.

    Args:
        aggregate: Current aggregate; None (nothing loaded) is never complete.
        policy: Which rule to apply.

    Returns:
        True when the policy considers onboarding finished.
    """
    if aggregate is None:
        return False
    if aggregate.onboarding_completed is True:
        return True
    if CompletionPolicy(policy) is CompletionPolicy.EXPLICIT_ONLY:
        return False
    return meets_minimum_requirements(aggregate)


@dataclass(frozen=True)
class CompletionStatus:
    """Per-area completeness shown in the profile sidebar."""

    personal_info: bool = False
    external_profiles: bool = False
    company_preferences: bool = False
    location_preferences: bool = False
    employment_details: bool = False
    roles: bool = False


def completion_status(aggregate: ProfileAggregate | None) -> CompletionStatus:
    if aggregate is None:
        return CompletionStatus()
    return CompletionStatus(
        personal_info=bool(aggregate.full_name and aggregate.email),
        external_profiles=bool(
            aggregate.linkedin_url
            or aggregate.github_url
            or aggregate.website_url
            or aggregate.resume_url
        ),
        # Always has defaults
        company_preferences=True,
        location_preferences=len(aggregate.locations) > 0,
        employment_details=bool(aggregate.employment_type),
        roles=len(aggregate.selected_roles) > 0,
    )


def completion_percentage(aggregate: ProfileAggregate | None, section_count: int) -> int:
    """Completed sections as a percentage of the real (non-pseudo) sections.

    Capped at 100 because ``welcome`` also lands in completed_steps.
    """
    if aggregate is None or section_count <= 0:
        return 0
    return min(100, round(len(aggregate.completed_steps) / section_count * 100))
