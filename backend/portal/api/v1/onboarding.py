"""Onboarding / profile wizard endpoints.

Thin wrappers over the identity's SectionOrchestrator. Forward from an
invalid required section is a 422 carrying the inline field errors; a
partial save is reported in the outcome message, not as an error.
"""

import structlog
from fastapi import APIRouter

from portal.api.deps import CurrentExperience
from portal.core.errors import ConflictError, InvalidStateError
from portal.core.responses import DataResponse
from portal.schemas.navigation import (
    NavigationStateRead,
    StartOnboardingRequest,
    StepOutcomeRead,
)
from portal.services.completion import completion_percentage
from portal.services.experience_registry import Experience
from portal.services.section_orchestrator import (
    REQUIRED_FIELDS_MESSAGE,
    SAVE_IN_PROGRESS_MESSAGE,
    StepOutcome,
)
from portal.services.sections import PROFILE_ORDER

logger = structlog.get_logger()

router = APIRouter()


def navigation_state(experience: Experience) -> NavigationStateRead:
    orchestrator = experience.orchestrator
    aggregate = experience.store.aggregate
    completed = aggregate.completed_steps if aggregate else []
    return NavigationStateRead.build(
        orchestrator.state,
        can_advance=orchestrator.can_advance(),
        completed_steps=completed,
        completion_percentage=completion_percentage(aggregate, len(PROFILE_ORDER)),
    )


def _outcome(experience: Experience, outcome: StepOutcome) -> DataResponse[StepOutcomeRead]:
    experience.navigator.take_redirect()
    return DataResponse(data=StepOutcomeRead.build(outcome, navigation_state(experience)))


def _ensure_started(experience: Experience) -> None:
    if not experience.started:
        experience.orchestrator.start()
        experience.started = True


@router.get("/state")
async def get_state(experience: CurrentExperience) -> DataResponse[NavigationStateRead]:
    """Current wizard position."""
    _ensure_started(experience)
    return DataResponse(data=navigation_state(experience))


@router.post("/start")
async def start(
    experience: CurrentExperience,
    body: StartOnboardingRequest | None = None,
) -> DataResponse[NavigationStateRead]:
    """(Re)enter the wizard.

    ``force`` puts the identity in onboarding mode even when onboarding is
    already complete.
    """
    body = body or StartOnboardingRequest()
    experience.orchestrator.start(requested_mode=body.mode, forced=body.force)
    experience.started = True
    return DataResponse(data=navigation_state(experience))


@router.post("/forward")
async def forward(experience: CurrentExperience) -> DataResponse[StepOutcomeRead]:
    """Complete the current section, save, and move on."""
    _ensure_started(experience)
    orchestrator = experience.orchestrator
    if orchestrator.is_saving:
        raise ConflictError("SAVE_IN_PROGRESS", SAVE_IN_PROGRESS_MESSAGE)
    outcome = await orchestrator.forward()
    if not outcome.moved and outcome.message == REQUIRED_FIELDS_MESSAGE:
        section_id = orchestrator.state.active_section_id
        errors = experience.store.validator.result(section_id).errors
        raise InvalidStateError(
            REQUIRED_FIELDS_MESSAGE,
            details=[{"field": name, "error": message} for name, message in errors.items()],
        )
    logger.info(
        "wizard_forward",
        user_id=experience.identity.id,
        section=orchestrator.state.active_section_id,
        moved=outcome.moved,
    )
    return _outcome(experience, outcome)


@router.post("/back")
async def back(experience: CurrentExperience) -> DataResponse[StepOutcomeRead]:
    _ensure_started(experience)
    return _outcome(experience, experience.orchestrator.back())


@router.post("/jump/{section_id}")
async def jump(section_id: str, experience: CurrentExperience) -> DataResponse[StepOutcomeRead]:
    """Go to a section. Ignored (moved=false) when the current mode does not allow it."""
    _ensure_started(experience)
    return _outcome(experience, experience.orchestrator.jump(section_id))


@router.post("/save")
async def save_section(experience: CurrentExperience) -> DataResponse[StepOutcomeRead]:
    """Explicit "Save Changes" without moving."""
    _ensure_started(experience)
    return _outcome(experience, await experience.orchestrator.save_section())
