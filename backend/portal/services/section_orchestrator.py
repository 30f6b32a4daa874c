"""Section orchestrator - the onboarding/profile wizard state machine.

Onboarding mode walks welcome → personal → roles → preferences →
education → resume → complete. Forward is gated on the current section's
validity; reaching ``complete`` sets the completion flag, saves, and sends
the client to the dashboard. Profile mode is a free grid over the real
sections with no terminal state.
"""

import dataclasses
import logging
from dataclasses import dataclass

from portal.providers.store.base import Collection
from portal.services.navigation import Navigator
from portal.services.profile_store import ProfileStore, SaveResult
from portal.services.sections import COMPLETE, PERSONAL, WELCOME, get_section, section_order
from portal.services.tiers import NavigationMode

logger = logging.getLogger(__name__)

PARTIAL_SAVE_MESSAGE = "Changes saved but there was an error updating some information."
SAVE_FAILED_MESSAGE = "Failed to save changes. Please try again."
REQUIRED_FIELDS_MESSAGE = "Please complete all required fields before continuing."
SAVED_MESSAGE = "Changes saved successfully!"
SAVE_IN_PROGRESS_MESSAGE = "A save is already in progress."


@dataclass(frozen=True)
class NavigationState:
    """Where the wizard is.

    Attributes:
        mode: onboarding or profile.
        current_step_index: Index into ``section_order(mode)``.
        active_section_id: Section id at that index.
        forced: Onboarding was forced by the caller regardless of progress.
    """

    mode: NavigationMode
    current_step_index: int
    active_section_id: str
    forced: bool = False


@dataclass(frozen=True)
class StepOutcome:
    """Result of a navigation action."""

    moved: bool
    state: NavigationState
    message: str = ""
    redirect: str | None = None
    save: SaveResult | None = None


def resolve_mode(
    requested: NavigationMode | str | None,
    onboarding_complete: bool,
    forced: bool = False,
) -> NavigationMode:
    """Pick the wizard mode.

    Forced onboarding always wins; otherwise an explicit onboarding request
    or unfinished onboarding means onboarding mode.
    """
    if forced:
        return NavigationMode.ONBOARDING
    if requested is not None and NavigationMode(requested) is NavigationMode.ONBOARDING:
        return NavigationMode.ONBOARDING
    if not onboarding_complete:
        return NavigationMode.ONBOARDING
    return NavigationMode.PROFILE


def initial_index(mode: NavigationMode, completed_steps: list[str]) -> int:
    """Starting step for ``mode`` given the steps already completed."""
    order = section_order(mode)
    if mode is NavigationMode.PROFILE:
        return order.index(PERSONAL)
    if WELCOME not in completed_steps:
        return 0
    for index, section_id in enumerate(order):
        if index > 0 and section_id not in completed_steps:
            return index
    return len(order) - 1


class SectionOrchestrator:
    """Drives one identity's wizard over a ProfileStore.

    Args:
        store: The identity's profile store. The aggregate is only ever
            changed through it.
        navigator: Receives the dashboard redirect on completion.
    """

    def __init__(self, store: ProfileStore, navigator: Navigator | None = None) -> None:
        self.store = store
        self.navigator = navigator
        self.message = ""
        self._saving = False
        self._state = NavigationState(
            mode=NavigationMode.PROFILE,
            current_step_index=0,
            active_section_id=section_order(NavigationMode.PROFILE)[0],
        )

    @property
    def state(self) -> NavigationState:
        return self._state

    @property
    def order(self) -> tuple[str, ...]:
        return section_order(self._state.mode)

    @property
    def is_saving(self) -> bool:
        return self._saving

    def start(
        self,
        requested_mode: NavigationMode | str | None = None,
        forced: bool = False,
    ) -> NavigationState:
        """(Re)enter the wizard, resolving the mode and the starting section."""
        mode = resolve_mode(requested_mode, self.store.is_onboarding_complete, forced)
        aggregate = self.store.aggregate
        completed = aggregate.completed_steps if aggregate else []
        self._move_to(initial_index(mode, completed), mode=mode, forced=forced)
        self.message = ""
        logger.info(
            "Wizard started in %s mode at %s", mode.value, self._state.active_section_id
        )
        return self._state

    def _move_to(
        self,
        index: int,
        mode: NavigationMode | None = None,
        forced: bool | None = None,
    ) -> None:
        mode = mode or self._state.mode
        self._state = dataclasses.replace(
            self._state,
            mode=mode,
            current_step_index=index,
            active_section_id=section_order(mode)[index],
            forced=self._state.forced if forced is None else forced,
        )

    def _outcome(self, moved: bool, **kwargs) -> StepOutcome:
        return StepOutcome(moved=moved, state=self._state, message=self.message, **kwargs)

    def can_advance(self) -> bool:
        """Whether forward is allowed from the current section."""
        if self._saving:
            return False
        section = get_section(self._state.active_section_id)
        if section is None:
            return False
        if section.is_pseudo or not section.required:
            return True
        return self.store.validator.is_valid(section.id)

    async def forward(self) -> StepOutcome:
        """Complete the current section, persist, and move on."""
        if self._saving:
            self.message = SAVE_IN_PROGRESS_MESSAGE
            return self._outcome(False)
        if not self.can_advance():
            self.message = REQUIRED_FIELDS_MESSAGE
            return self._outcome(False)

        self._saving = True
        try:
            if self._state.mode is NavigationMode.PROFILE:
                return await self._forward_profile()
            return await self._forward_onboarding()
        finally:
            self._saving = False

    async def _forward_profile(self) -> StepOutcome:
        self.store.complete_step(self._state.active_section_id)
        result = await self.store.save()
        self.message = "" if result.ok else PARTIAL_SAVE_MESSAGE
        index = self._state.current_step_index
        moved = index < len(self.order) - 1
        if moved:
            self._move_to(index + 1)
        return self._outcome(moved, save=result)

    async def _forward_onboarding(self) -> StepOutcome:
        order = self.order
        index = self._state.current_step_index
        self.store.complete_step(self._state.active_section_id)

        next_index = min(index + 1, len(order) - 1)
        if order[next_index] == COMPLETE:
            return await self._finish(next_index)

        self._move_to(next_index)
        result = await self.store.save()
        self.message = "" if result.ok else PARTIAL_SAVE_MESSAGE
        return self._outcome(True, save=result)

    async def _finish(self, complete_index: int) -> StepOutcome:
        aggregate = self.store.aggregate
        previously_completed = aggregate.onboarding_completed if aggregate else False
        self.store.update(onboarding_completed=True)
        result = await self.store.save()
        if not result.ok:
            logger.error("Final onboarding save failed: %s", [c.value for c in result.failed])
            if Collection.USER_ONBOARDING in result.failed:
                # The flag must match what was persisted
                self.store.update(onboarding_completed=previously_completed)
            self.message = SAVE_FAILED_MESSAGE
            return self._outcome(False, save=result)

        self._move_to(complete_index)
        self.message = ""
        redirect = None
        if self.navigator is not None:
            self.navigator.go_to_dashboard()
            redirect = self.navigator.current_path
        logger.info("Onboarding finished, redirecting to %s", redirect)
        return self._outcome(True, redirect=redirect, save=result)

    def back(self) -> StepOutcome:
        """Step back one section. Never persists."""
        index = self._state.current_step_index
        if index == 0:
            return self._outcome(False)
        self._move_to(index - 1)
        self.message = ""
        return self._outcome(True)

    def jump(self, section_id: str) -> StepOutcome:
        """Go straight to ``section_id``.

        Always allowed in profile mode; in onboarding mode only for sections
        already completed. Anything else leaves the state unchanged.
        """
        order = self.order
        if section_id not in order or section_id == self._state.active_section_id:
            return self._outcome(False)
        if self._state.mode is NavigationMode.ONBOARDING:
            aggregate = self.store.aggregate
            if aggregate is None or section_id not in aggregate.completed_steps:
                return self._outcome(False)
        self._move_to(order.index(section_id))
        self.message = ""
        return self._outcome(True)

    async def save_section(self) -> StepOutcome:
        """Explicit "Save Changes" without moving."""
        self._saving = True
        try:
            result = await self.store.save()
        finally:
            self._saving = False
        self.message = SAVED_MESSAGE if result.ok else PARTIAL_SAVE_MESSAGE
        return self._outcome(False, save=result)
