"""Tests for the in-memory navigator."""

from portal.services.navigation import (
    DASHBOARD_PATH,
    ONBOARDING_PATH,
    SIGN_IN_PATH,
    HistoryNavigator,
    job_path,
    profile_path,
)


def test_paths():
    assert profile_path() == "/profile"
    assert profile_path("roles") == "/profile/roles"
    assert job_path(7) == "/jobs/7"


def test_navigate_pushes_and_records_redirect():
    navigator = HistoryNavigator()

    navigator.go_to_dashboard()

    assert navigator.history == ["/", DASHBOARD_PATH]
    assert navigator.is_current(DASHBOARD_PATH)
    assert navigator.take_redirect() == DASHBOARD_PATH
    assert navigator.take_redirect() is None


def test_replace_overwrites_current_entry():
    navigator = HistoryNavigator(start=DASHBOARD_PATH)

    navigator.go_to_onboarding()
    navigator.go_to_sign_in()

    assert navigator.history == [SIGN_IN_PATH]


def test_go_back():
    navigator = HistoryNavigator(start=ONBOARDING_PATH)
    navigator.go_to_profile("personal")

    navigator.go_back()

    assert navigator.current_path == ONBOARDING_PATH
    assert navigator.pending_redirect == ONBOARDING_PATH


def test_go_back_at_root_stays():
    navigator = HistoryNavigator()

    navigator.go_back()

    assert navigator.history == ["/"]
    assert navigator.pending_redirect is None


def test_helpers_push_expected_paths():
    navigator = HistoryNavigator(start="/dashboard")

    navigator.go_to_job(3)
    navigator.go_to_profile()
    navigator.go_to_sign_up()

    assert navigator.history == ["/dashboard", "/jobs/3", "/profile", "/signup"]
