"""Dashboard, job and company endpoints.

Every route here sits behind the onboarding guard: an identity that has
not finished onboarding gets 403 ONBOARDING_REQUIRED with the redirect.
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends

from portal.api.deps import OnboardedExperience
from portal.core.errors import NotFoundError
from portal.core.pagination import PaginationParams, pagination_params
from portal.core.responses import DataResponse, ListResponse, PaginationMeta
from portal.schemas.dashboard import CompanyRead, JobMatchRead, SkillAssessmentRead, SkillRead
from portal.services.job_matches import COMPANIES, SKILLS, get_company, get_job, top_skills

logger = structlog.get_logger()

router = APIRouter()
jobs_router = APIRouter()
companies_router = APIRouter()


# =============================================================================
# /dashboard
# =============================================================================


@router.get("/matches")
async def list_matches(experience: OnboardedExperience) -> DataResponse[dict]:
    """The caller's matches and how many are active."""
    board = experience.matches
    return DataResponse(
        data={
            "matches": [JobMatchRead.from_match(m).model_dump() for m in board.matches],
            "active_count": board.active_count,
        }
    )


@router.post("/matches/{match_id}/accept")
async def accept_match(match_id: str, experience: OnboardedExperience) -> DataResponse[JobMatchRead]:
    match = experience.matches.accept(match_id)
    if match is None:
        raise NotFoundError("Match", match_id)
    logger.info("match_accepted", user_id=experience.identity.id, match_id=match_id)
    return DataResponse(data=JobMatchRead.from_match(match))


@router.post("/matches/{match_id}/decline")
async def decline_match(
    match_id: str, experience: OnboardedExperience
) -> DataResponse[JobMatchRead]:
    match = experience.matches.decline(match_id)
    if match is None:
        raise NotFoundError("Match", match_id)
    logger.info("match_declined", user_id=experience.identity.id, match_id=match_id)
    return DataResponse(data=JobMatchRead.from_match(match))


@router.get("/skills")
async def get_skills(
    _experience: OnboardedExperience,
) -> DataResponse[SkillAssessmentRead]:
    """Skills assessment: every rated skill plus the four strongest."""
    return DataResponse(
        data=SkillAssessmentRead(
            skills=[SkillRead.from_skill(skill) for skill in SKILLS],
            top_skills=[skill.name for skill in top_skills()],
        )
    )


# =============================================================================
# /jobs
# =============================================================================


@jobs_router.get("/{job_id}")
async def get_job_detail(job_id: str, experience: OnboardedExperience) -> DataResponse[JobMatchRead]:
    """Job details, with the caller's own status for it."""
    job = experience.matches.get(job_id) or get_job(job_id)
    if job is None:
        raise NotFoundError("Job", job_id)
    return DataResponse(data=JobMatchRead.from_match(job))


# =============================================================================
# /companies
# =============================================================================


@companies_router.get("")
async def list_companies(
    experience: OnboardedExperience,  # noqa: ARG001 - guard only
    pagination: Annotated[PaginationParams, Depends(pagination_params)],
) -> ListResponse[CompanyRead]:
    """Company directory, paginated."""
    page = pagination.slice(list(COMPANIES))
    return ListResponse(
        data=[CompanyRead.from_company(c) for c in page],
        meta=PaginationMeta(
            total=len(COMPANIES),
            page=pagination.page,
            per_page=pagination.per_page,
        ),
    )


@companies_router.get("/{company_id}")
async def get_company_detail(
    company_id: str,
    experience: OnboardedExperience,  # noqa: ARG001 - guard only
) -> DataResponse[CompanyRead]:
    company = get_company(company_id)
    if company is None:
        raise NotFoundError("Company", company_id)
    return DataResponse(data=CompanyRead.from_company(company))
