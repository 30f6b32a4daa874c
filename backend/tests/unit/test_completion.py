"""Tests for the onboarding completion evaluator and completion status."""

import pytest

from portal.services.completion import (
    CompletionPolicy,
    completion_percentage,
    completion_status,
    is_onboarding_complete,
)
from portal.services.profile_aggregate import ProfileAggregate


def _aggregate(**values) -> ProfileAggregate:
    return ProfileAggregate(id="u1", **values)


class TestIsOnboardingComplete:
    def test_nothing_loaded(self):
        assert not is_onboarding_complete(None)

    def test_explicit_flag(self):
        assert is_onboarding_complete(_aggregate(onboarding_completed=True))

    def test_heuristic_needs_role_and_two_steps(self):
        assert is_onboarding_complete(
            _aggregate(selected_roles=["pm"], completed_steps=["welcome", "personal"])
        )
        assert not is_onboarding_complete(
            _aggregate(selected_roles=["pm"], completed_steps=["welcome"])
        )
        assert not is_onboarding_complete(
            _aggregate(selected_roles=[], completed_steps=["welcome", "personal", "roles"])
        )

    def test_explicit_only_ignores_heuristic(self):
        aggregate = _aggregate(selected_roles=["pm"], completed_steps=["welcome", "personal"])
        assert not is_onboarding_complete(aggregate, CompletionPolicy.EXPLICIT_ONLY)
        aggregate.onboarding_completed = True
        assert is_onboarding_complete(aggregate, "explicit_only")

    def test_unknown_policy_rejected(self):
        with pytest.raises(ValueError):
            is_onboarding_complete(_aggregate(), "sometimes")


class TestCompletionStatus:
    def test_nothing_loaded(self):
        status = completion_status(None)
        assert not any(vars(status).values())

    def test_defaults(self):
        status = completion_status(_aggregate())
        assert status.company_preferences
        assert status.employment_details
        assert not status.personal_info
        assert not status.external_profiles
        assert not status.location_preferences
        assert not status.roles

    def test_filled_in(self):
        status = completion_status(
            _aggregate(
                full_name="Ada",
                email="ada@example.com",
                resume_url="http://x/cv.pdf",
                locations=["Berlin"],
                selected_roles=["data"],
            )
        )
        assert status.personal_info
        assert status.external_profiles
        assert status.location_preferences
        assert status.roles


class TestCompletionPercentage:
    def test_fraction_of_sections(self):
        assert completion_percentage(_aggregate(completed_steps=["personal", "roles"]), 5) == 40

    def test_capped_at_100(self):
        steps = ["welcome", "personal", "roles", "preferences", "education", "resume"]
        assert completion_percentage(_aggregate(completed_steps=steps), 5) == 100

    def test_empty(self):
        assert completion_percentage(None, 5) == 0
        assert completion_percentage(_aggregate(), 0) == 0
