"""Pydantic request/response schemas for API endpoints."""

from portal.schemas.dashboard import CompanyRead, JobMatchRead, JobRoleRead
from portal.schemas.navigation import (
    FieldRead,
    NavigationStateRead,
    SectionRead,
    StartOnboardingRequest,
    StepOutcomeRead,
)
from portal.schemas.profile import (
    ProfileRead,
    ProfileState,
    ProfileUpdate,
    ResumeRead,
    SaveResponse,
    SaveResultRead,
    TableSaveRead,
)

__all__ = [
    # Dashboard
    "CompanyRead",
    "JobMatchRead",
    "JobRoleRead",
    # Navigation
    "FieldRead",
    "NavigationStateRead",
    "SectionRead",
    "StartOnboardingRequest",
    "StepOutcomeRead",
    # Profile
    "ProfileRead",
    "ProfileState",
    "ProfileUpdate",
    "ResumeRead",
    "SaveResponse",
    "SaveResultRead",
    "TableSaveRead",
]
