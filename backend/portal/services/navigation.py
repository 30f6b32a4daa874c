"""Navigation collaborator.

The core never renders anything; it only asks the navigator to move the
client somewhere. API responses carry the resulting path as a redirect hint.
"""

from abc import ABC, abstractmethod

DASHBOARD_PATH = "/dashboard"
ONBOARDING_PATH = "/onboarding"
PROFILE_PATH = "/profile"
SIGN_IN_PATH = "/signin"
SIGN_UP_PATH = "/signup"


def profile_path(section_id: str | None = None) -> str:
    if section_id:
        return f"{PROFILE_PATH}/{section_id}"
    return PROFILE_PATH


def job_path(job_id: int | str) -> str:
    return f"/jobs/{job_id}"


class Navigator(ABC):
    """Moves the client between routes."""

    @property
    @abstractmethod
    def current_path(self) -> str:
        """Path the client is currently on."""
        ...

    @abstractmethod
    def navigate_to(self, path: str, replace: bool = False) -> None:
        """Go to ``path``. With ``replace`` the current entry is overwritten."""
        ...

    def is_current(self, path: str) -> bool:
        return self.current_path == path

    def go_to_dashboard(self) -> None:
        self.navigate_to(DASHBOARD_PATH)

    def go_to_onboarding(self) -> None:
        self.navigate_to(ONBOARDING_PATH, replace=True)

    def go_to_profile(self, section_id: str | None = None) -> None:
        self.navigate_to(profile_path(section_id))

    def go_to_job(self, job_id: int | str) -> None:
        self.navigate_to(job_path(job_id))

    def go_to_sign_in(self) -> None:
        self.navigate_to(SIGN_IN_PATH, replace=True)

    def go_to_sign_up(self) -> None:
        self.navigate_to(SIGN_UP_PATH)


class HistoryNavigator(Navigator):
    """In-memory history stack.

    The API keeps one per identity; ``pending_redirect`` is consumed by the
    next response and sent to the client.
    """

    def __init__(self, start: str = "/") -> None:
        self.history: list[str] = [start]
        self.pending_redirect: str | None = None

    @property
    def current_path(self) -> str:
        return self.history[-1]

    def navigate_to(self, path: str, replace: bool = False) -> None:
        if replace:
            self.history[-1] = path
        else:
            self.history.append(path)
        self.pending_redirect = path

    def go_back(self) -> None:
        if len(self.history) > 1:
            self.history.pop()
            self.pending_redirect = self.history[-1]

    def take_redirect(self) -> str | None:
        """Return and clear the pending redirect."""
        redirect, self.pending_redirect = self.pending_redirect, None
        return redirect
