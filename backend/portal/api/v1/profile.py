"""Profile endpoints.

Edits are local to the identity's ProfileStore until saved. Saving writes
the three tables independently and reports each one; a partial failure is
a 200 with ``ok: false`` rather than an error.
"""

import dataclasses
from typing import Annotated

import structlog
from fastapi import APIRouter, File, Request, UploadFile

from portal.api.deps import CurrentExperience, UserStorage
from portal.core.config import settings
from portal.core.errors import InvalidStateError, ServiceUnavailableError, ValidationError
from portal.core.file_validation import read_file_with_size_limit
from portal.core.rate_limiting import limiter
from portal.core.responses import DataResponse
from portal.providers.errors import StorageError, TransientError
from portal.schemas.profile import (
    ProfileRead,
    ProfileState,
    ProfileUpdate,
    ResumeRead,
    SaveResponse,
    SaveResultRead,
)
from portal.services.experience_registry import Experience
from portal.services.field_validation import validate_section
from portal.services.profile_store import ProfileStore
from portal.services.resume_upload import upload_resume
from portal.services.role_catalog import unknown_roles
from portal.services.sections import PERSONAL, ROLES

logger = structlog.get_logger()

router = APIRouter()

_NOT_LOADED_MSG = "Profile is not loaded"


def profile_state(store: ProfileStore) -> ProfileState:
    aggregate = store.aggregate
    errors = {}
    if aggregate is not None:
        for section_id in (PERSONAL, ROLES):
            result = validate_section(section_id, aggregate)
            if result.errors:
                errors[section_id] = result.errors
    return ProfileState(
        profile=ProfileRead.from_aggregate(aggregate) if aggregate else None,
        is_onboarding_complete=store.is_onboarding_complete,
        completion_status=dataclasses.asdict(store.completion_status),
        validation_errors=errors,
    )


def _require_loaded(experience: Experience) -> None:
    if not experience.store.is_loaded:
        raise InvalidStateError(_NOT_LOADED_MSG)


@router.get("")
async def get_profile(experience: CurrentExperience) -> DataResponse[ProfileState]:
    """Merged profile with completion and validation state."""
    return DataResponse(data=profile_state(experience.store))


@router.patch("")
async def update_profile(
    body: ProfileUpdate,
    experience: CurrentExperience,
) -> DataResponse[ProfileState]:
    """Apply edits locally. Nothing is written until POST /profile/save."""
    _require_loaded(experience)
    changes = body.model_dump(exclude_unset=True)

    unknown = unknown_roles(changes.get("selected_roles") or [])
    if unknown:
        raise ValidationError(
            message="Unknown role selected",
            details=[{"field": "selected_roles", "error": "UNKNOWN_ROLE", "values": unknown}],
        )
    try:
        experience.store.update(changes)
    except ValueError as e:
        raise ValidationError(message=str(e)) from e
    return DataResponse(data=profile_state(experience.store))


@router.post("/save")
async def save_profile(experience: CurrentExperience) -> DataResponse[SaveResponse]:
    """Persist the profile and report which tables were written.

    After a save with at least one success the profile row is re-read and
    any drift from the in-memory values is reported.
    """
    _require_loaded(experience)
    result = await experience.store.save()
    drift: list[str] = []
    if any(t.ok for t in result.tables):
        drift = sorted(await experience.store.verify())
    logger.info(
        "profile_saved",
        user_id=experience.identity.id,
        ok=result.ok,
        failed=[c.value for c in result.failed],
    )
    return DataResponse(data=SaveResponse(save=SaveResultRead.from_result(result), drift=drift))


@router.post("/reload")
async def reload_profile(experience: CurrentExperience) -> DataResponse[ProfileState]:
    """Discard local edits and load the stored profile again."""
    await experience.store.load()
    return DataResponse(data=profile_state(experience.store))


@router.post("/resume", status_code=201)
@limiter.limit(settings.rate_limit_uploads)
async def upload_profile_resume(
    request: Request,  # noqa: ARG001 - required by @limiter.limit()
    file: Annotated[UploadFile, File(...)],
    experience: CurrentExperience,
    storage: UserStorage,
) -> DataResponse[dict]:
    """Upload a résumé (PDF, DOC or DOCX, at most RESUME_MAX_SIZE_MB).

    The file goes to object storage, the profile points at it, and the
    profile is saved.
    """
    _require_loaded(experience)
    content = await read_file_with_size_limit(file, settings.resume_max_size_bytes)
    try:
        reference = await upload_resume(
            experience.store,
            storage,
            content,
            filename=file.filename or "resume",
            content_type=file.content_type,
            max_size=settings.resume_max_size_bytes,
        )
    except TransientError as e:
        raise ServiceUnavailableError() from e
    except StorageError as e:
        logger.warning("resume_upload_rejected", user_id=experience.identity.id, error=str(e))
        raise ValidationError(
            message="Failed to upload resume",
            details=[{"field": "file", "error": "UPLOAD_FAILED"}],
        ) from e

    result = await experience.store.save()
    return DataResponse(
        data={
            "resume": ResumeRead(**reference.to_dict()).model_dump(),
            "save": SaveResultRead.from_result(result).model_dump(),
        }
    )
