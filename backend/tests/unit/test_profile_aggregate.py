"""Tests for merging remote rows into the aggregate and splitting it back."""

import pytest

from portal.providers.identity.base import Identity
from portal.services.profile_aggregate import (
    EmploymentType,
    ProfileAggregate,
    RemotePreference,
    ResumeReference,
    StagePreference,
    coerce_attribute,
    merge_rows,
    onboarding_row,
    preferences_row,
    profile_row,
)

_IDENTITY = Identity(
    id="u1",
    email="meta@example.com",
    metadata={"given_name": "Ada", "family_name": "Lovelace", "picture": "http://img/a.png"},
)


class TestMergeRows:
    def test_no_rows_uses_identity_and_defaults(self):
        aggregate = merge_rows(_IDENTITY, None, None, None)

        assert aggregate.id == "u1"
        assert aggregate.full_name == "Ada Lovelace"
        assert aggregate.email == "meta@example.com"
        assert aggregate.avatar_url == "http://img/a.png"
        assert aggregate.remote_preference is RemotePreference.FLEXIBLE
        assert aggregate.employment_type is EmploymentType.FULL_TIME
        assert aggregate.company_stage_preferences == {
            "early_stage": StagePreference.NEUTRAL,
            "late_stage": StagePreference.NEUTRAL,
            "enterprise": StagePreference.NEUTRAL,
        }
        assert aggregate.selected_roles == []
        assert aggregate.onboarding_completed is False
        assert aggregate.resume is None

    def test_profile_row_wins_over_metadata(self):
        aggregate = merge_rows(
            _IDENTITY,
            {"id": "u1", "full_name": "Countess", "email": "row@example.com"},
            None,
            None,
        )
        assert aggregate.full_name == "Countess"
        assert aggregate.email == "row@example.com"

    def test_empty_values_fall_through(self):
        aggregate = merge_rows(_IDENTITY, {"id": "u1", "full_name": "", "email": None}, None, None)
        assert aggregate.full_name == "Ada Lovelace"
        assert aggregate.email == "meta@example.com"

    def test_cleared_avatar_comes_back_from_metadata(self):
        aggregate = merge_rows(
            _IDENTITY, {"id": "u1", "full_name": "Countess", "avatar_url": ""}, None, None
        )
        assert aggregate.avatar_url == "http://img/a.png"

        bare = Identity(id="u1", email="meta@example.com")
        assert merge_rows(bare, {"id": "u1", "avatar_url": ""}, None, None).avatar_url == ""

    def test_onboarding_row(self):
        aggregate = merge_rows(
            _IDENTITY,
            None,
            None,
            {
                "user_id": "u1",
                "selected_roles": ["pm", "pm", "design"],
                "completed_steps": ["welcome", "personal"],
                "completed": True,
            },
        )
        assert aggregate.selected_roles == ["pm", "design"]
        assert aggregate.completed_steps == ["welcome", "personal"]
        assert aggregate.onboarding_completed is True

    def test_invalid_values_are_dropped(self):
        aggregate = merge_rows(
            _IDENTITY,
            None,
            {"user_id": "u1", "remote_preference": "moon", "salary_min": "lots"},
            None,
        )
        assert aggregate.remote_preference is RemotePreference.FLEXIBLE
        assert aggregate.salary_min is None

    def test_resume_reference_from_preferences(self):
        aggregate = merge_rows(
            _IDENTITY,
            None,
            {
                "user_id": "u1",
                "resume_url": "http://storage/resumes/u1-1.pdf",
                "resume_file_name": "cv.pdf",
                "resume_uploaded_at": "2026-01-02T03:04:05+00:00",
            },
            None,
        )
        assert aggregate.resume == ResumeReference(
            file_url="http://storage/resumes/u1-1.pdf",
            file_name="cv.pdf",
            upload_date="2026-01-02T03:04:05+00:00",
        )


class TestCoerceAttribute:
    def test_unknown_attribute(self):
        with pytest.raises(ValueError, match="Unknown profile attribute"):
            coerce_attribute("shoe_size", 42)

    def test_id_is_not_updatable(self):
        with pytest.raises(ValueError):
            coerce_attribute("id", "u2")

    def test_set_like_dedupes_in_order(self):
        assert coerce_attribute("locations", ["Berlin", "Paris", "Berlin"]) == ["Berlin", "Paris"]

    def test_set_like_rejects_string(self):
        with pytest.raises(ValueError):
            coerce_attribute("selected_roles", "pm")

    def test_stage_preferences_merge_over_defaults(self):
        prefs = coerce_attribute("company_stage_preferences", {"enterprise": "avoid"})
        assert prefs["enterprise"] is StagePreference.AVOID
        assert prefs["early_stage"] is StagePreference.NEUTRAL

    def test_stage_preferences_unknown_stage(self):
        with pytest.raises(ValueError):
            coerce_attribute("company_stage_preferences", {"seed": "preferred"})

    def test_salary(self):
        assert coerce_attribute("salary_min", "120000") == 120000
        assert coerce_attribute("salary_max", "") is None
        with pytest.raises(ValueError):
            coerce_attribute("salary_min", True)

    def test_completed_flag_requires_true(self):
        assert coerce_attribute("onboarding_completed", True) is True
        assert coerce_attribute("onboarding_completed", "yes") is False


class TestRows:
    def test_round_trip_through_rows(self):
        aggregate = ProfileAggregate(
            id="u1",
            full_name="Ada",
            email="ada@example.com",
            locations=["Berlin"],
            remote_preference=RemotePreference.REMOTE,
            selected_roles=["backend"],
            completed_steps=["welcome"],
            resume=ResumeReference("http://s/cv.pdf", "cv.pdf", "2026-01-01T00:00:00+00:00"),
            resume_url="http://s/cv.pdf",
        )
        merged = merge_rows(
            Identity(id="u1"),
            profile_row(aggregate),
            preferences_row(aggregate),
            onboarding_row(aggregate, completed=False),
        )
        assert merged == aggregate

    def test_onboarding_row_stores_evaluator_output(self):
        aggregate = ProfileAggregate(id="u1", onboarding_completed=False)
        assert onboarding_row(aggregate, completed=True)["completed"] is True

    def test_preferences_row_serializes_enums(self):
        row = preferences_row(ProfileAggregate(id="u1"))
        assert row["remote_preference"] == "flexible"
        assert row["employment_type"] == "full_time"
        assert row["company_stage_preferences"]["late_stage"] == "neutral"
        assert row["resume_file_name"] is None
