"""Route guard: where an identity may go given its auth and onboarding state.

- Anonymous on a protected route → sign-in
- Signed in but onboarding incomplete on a dashboard route → onboarding
- Signed in on the sign-in/sign-up pages → dashboard (or onboarding)
- Anything decided while the session or profile is still loading waits
"""

from dataclasses import dataclass
from enum import Enum

from portal.services.navigation import (
    DASHBOARD_PATH,
    ONBOARDING_PATH,
    SIGN_IN_PATH,
    SIGN_UP_PATH,
    Navigator,
)

PUBLIC_PATHS = frozenset({"/", SIGN_IN_PATH, SIGN_UP_PATH, "/auth/callback"})
AUTH_PAGES = frozenset({SIGN_IN_PATH, SIGN_UP_PATH})

# Routes that need finished onboarding
_ONBOARDED_PREFIXES = (DASHBOARD_PATH, "/jobs/", "/companies")


class GuardOutcome(str, Enum):
    ALLOW = "allow"
    LOADING = "loading"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class GuardDecision:
    outcome: GuardOutcome
    redirect: str | None = None

    @property
    def allowed(self) -> bool:
        return self.outcome is GuardOutcome.ALLOW


def requires_onboarding(path: str) -> bool:
    return any(path == p or path.startswith(p) for p in _ONBOARDED_PREFIXES)


def evaluate(
    path: str,
    *,
    authenticated: bool,
    onboarding_complete: bool,
    loading: bool = False,
) -> GuardDecision:
    """Decide whether ``path`` may be shown.

    Args:
        path: Requested route.
        authenticated: An identity is signed in.
        onboarding_complete: Completion evaluator output for that identity.
        loading: Session or profile still loading.

    Returns:
        GuardDecision; REDIRECT carries the target path.
    """
    if loading:
        return GuardDecision(GuardOutcome.LOADING)

    if not authenticated:
        if path in PUBLIC_PATHS:
            return GuardDecision(GuardOutcome.ALLOW)
        return GuardDecision(GuardOutcome.REDIRECT, SIGN_IN_PATH)

    if path in AUTH_PAGES:
        target = DASHBOARD_PATH if onboarding_complete else ONBOARDING_PATH
        return GuardDecision(GuardOutcome.REDIRECT, target)

    if requires_onboarding(path) and not onboarding_complete:
        return GuardDecision(GuardOutcome.REDIRECT, ONBOARDING_PATH)

    return GuardDecision(GuardOutcome.ALLOW)


class RouteGuard:
    """Applies ``evaluate`` and performs the redirect on the navigator."""

    def __init__(self, navigator: Navigator) -> None:
        self.navigator = navigator

    def check(
        self,
        path: str | None = None,
        *,
        authenticated: bool,
        onboarding_complete: bool,
        loading: bool = False,
    ) -> GuardDecision:
        decision = evaluate(
            path if path is not None else self.navigator.current_path,
            authenticated=authenticated,
            onboarding_complete=onboarding_complete,
            loading=loading,
        )
        if decision.outcome is GuardOutcome.REDIRECT and decision.redirect:
            self.navigator.navigate_to(decision.redirect, replace=True)
        return decision
