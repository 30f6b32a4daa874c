"""Section table and wizard state schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict

from portal.schemas.profile import SaveResultRead
from portal.services.section_orchestrator import NavigationState, StepOutcome
from portal.services.sections import Field, Section
from portal.services.tiers import NavigationMode


class FieldRead(BaseModel):
    id: str
    label: str
    tier: str
    required: bool
    attributes: list[str]

    @classmethod
    def from_field(cls, field: Field) -> "FieldRead":
        return cls(
            id=field.id,
            label=field.label,
            tier=field.tier.name,
            required=field.required,
            attributes=list(field.attributes),
        )


class SectionRead(BaseModel):
    id: str
    title: str
    required: bool
    fields: list[FieldRead]

    @classmethod
    def from_section(cls, section: Section, mode: NavigationMode) -> "SectionRead":
        return cls(
            id=section.id,
            title=section.title,
            required=section.required,
            fields=[FieldRead.from_field(f) for f in section.visible_fields(mode)],
        )


class NavigationStateRead(BaseModel):
    mode: str
    current_step_index: int
    active_section_id: str
    forced: bool
    can_advance: bool
    completed_steps: list[str]
    completion_percentage: int

    @classmethod
    def build(
        cls,
        state: NavigationState,
        can_advance: bool,
        completed_steps: list[str],
        completion_percentage: int,
    ) -> "NavigationStateRead":
        return cls(
            mode=state.mode.value,
            current_step_index=state.current_step_index,
            active_section_id=state.active_section_id,
            forced=state.forced,
            can_advance=can_advance,
            completed_steps=completed_steps,
            completion_percentage=completion_percentage,
        )


class StepOutcomeRead(BaseModel):
    moved: bool
    state: NavigationStateRead
    message: str = ""
    redirect: str | None = None
    save: SaveResultRead | None = None

    @classmethod
    def build(cls, outcome: StepOutcome, state: NavigationStateRead) -> "StepOutcomeRead":
        return cls(
            moved=outcome.moved,
            state=state,
            message=outcome.message,
            redirect=outcome.redirect,
            save=SaveResultRead.from_result(outcome.save) if outcome.save else None,
        )


class StartOnboardingRequest(BaseModel):
    """Body for POST /onboarding/start."""

    model_config = ConfigDict(extra="forbid")

    mode: Literal["onboarding", "profile"] | None = None
    force: bool = False
