"""Tests for field tiers and mode-dependent visibility."""

from dataclasses import dataclass

import pytest

from portal.services.tiers import FieldTier, NavigationMode, is_visible, resolve_tier


@dataclass
class _Field:
    tier: object = None


class TestResolveTier:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (FieldTier.ESSENTIAL, FieldTier.ESSENTIAL),
            (2, FieldTier.IMPORTANT),
            ("essential", FieldTier.ESSENTIAL),
            (" Comprehensive ", FieldTier.COMPREHENSIVE),
        ],
    )
    def test_known_values(self, value, expected):
        assert resolve_tier(value) is expected

    @pytest.mark.parametrize("value", [None, 0, 7, "critical", True, 1.0])
    def test_unknown_values_fall_back_to_comprehensive(self, value):
        assert resolve_tier(value) is FieldTier.COMPREHENSIVE


class TestIsVisible:
    def test_profile_mode_shows_everything(self):
        for tier in FieldTier:
            assert is_visible(_Field(tier), NavigationMode.PROFILE)
        assert is_visible(_Field(None), "profile")

    def test_onboarding_shows_only_essential(self):
        assert is_visible(_Field(FieldTier.ESSENTIAL), NavigationMode.ONBOARDING)
        assert not is_visible(_Field(FieldTier.IMPORTANT), NavigationMode.ONBOARDING)
        assert not is_visible(_Field(FieldTier.COMPREHENSIVE), "onboarding")

    def test_missing_tier_hidden_in_onboarding(self):
        assert not is_visible(object(), NavigationMode.ONBOARDING)

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValueError):
            is_visible(_Field(FieldTier.ESSENTIAL), "wizard")
