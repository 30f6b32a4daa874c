"""Profile request/response schemas.

ProfileUpdate lists only the attributes a client may edit directly.
Progress (completed_steps, onboarding_completed) moves through the
onboarding endpoints and the résumé through the upload endpoint.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from portal.services.profile_aggregate import ProfileAggregate
from portal.services.profile_store import SaveResult

StageValue = Literal["neutral", "preferred", "avoid"]
StageName = Literal["early_stage", "late_stage", "enterprise"]

_SHORT = 255
_URL = 2048
_BIO = 5000


class ResumeRead(BaseModel):
    file_url: str
    file_name: str
    upload_date: str


class ProfileRead(BaseModel):
    """The merged profile aggregate."""

    id: str
    full_name: str
    email: str
    avatar_url: str
    phone_number: str
    location: str
    title: str
    bio: str
    linkedin_url: str
    github_url: str
    website_url: str
    resume_url: str
    resume: ResumeRead | None
    company_stage_preferences: dict[str, str]
    locations: list[str]
    remote_preference: str
    employment_type: str
    graduation_date: str | None
    education_level: str | None
    experience_level: str | None
    salary_min: int | None
    salary_max: int | None
    selected_roles: list[str]
    completed_steps: list[str]
    onboarding_completed: bool

    @classmethod
    def from_aggregate(cls, aggregate: ProfileAggregate) -> "ProfileRead":
        return cls.model_validate(aggregate.to_dict())


class ProfileState(BaseModel):
    """Profile plus the values derived from it."""

    profile: ProfileRead | None
    is_onboarding_complete: bool
    completion_status: dict[str, bool]
    validation_errors: dict[str, dict[str, str]] = Field(default_factory=dict)


class ProfileUpdate(BaseModel):
    """Body for PATCH /profile. Unset fields are left unchanged."""

    model_config = ConfigDict(extra="forbid")

    full_name: str | None = Field(None, max_length=_SHORT)
    email: str | None = Field(None, max_length=_SHORT)
    avatar_url: str | None = Field(None, max_length=_URL)
    phone_number: str | None = Field(None, max_length=50)
    location: str | None = Field(None, max_length=_SHORT)
    title: str | None = Field(None, max_length=_SHORT)
    bio: str | None = Field(None, max_length=_BIO)
    linkedin_url: str | None = Field(None, max_length=_URL)
    github_url: str | None = Field(None, max_length=_URL)
    website_url: str | None = Field(None, max_length=_URL)
    company_stage_preferences: dict[StageName, StageValue] | None = None
    locations: list[str] | None = Field(None, max_length=50)
    remote_preference: Literal["remote", "hybrid", "office", "flexible"] | None = None
    employment_type: Literal["full_time", "part_time", "contract", "internship"] | None = None
    graduation_date: str | None = Field(None, max_length=20)
    education_level: str | None = Field(None, max_length=50)
    experience_level: str | None = Field(None, max_length=50)
    salary_min: int | None = Field(None, ge=0)
    salary_max: int | None = Field(None, ge=0)
    selected_roles: list[str] | None = Field(None, max_length=20)


class TableSaveRead(BaseModel):
    collection: str
    ok: bool
    error: str | None = None


class SaveResultRead(BaseModel):
    ok: bool
    tables: list[TableSaveRead]

    @classmethod
    def from_result(cls, result: SaveResult) -> "SaveResultRead":
        return cls(
            ok=result.ok,
            tables=[
                TableSaveRead(collection=t.collection.value, ok=t.ok, error=t.error)
                for t in result.tables
            ],
        )


class SaveResponse(BaseModel):
    save: SaveResultRead
    drift: list[str] = Field(default_factory=list)

